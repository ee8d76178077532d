from alembic import op
import sqlalchemy as sa

revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'shipments',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('tracking_number', sa.String(64), nullable=False),
        sa.Column('origin', sa.String(200), nullable=False),
        sa.Column('destination', sa.String(200), nullable=False),
        sa.Column('recipient', sa.String(200), nullable=True),
        sa.Column('created_at', sa.BigInteger, nullable=False)
    )
    op.create_index('ix_shipments_tracking_number', 'shipments', ['tracking_number'], unique=True)
    op.create_table(
        'tracking_events',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('shipment_id', sa.Integer, sa.ForeignKey('shipments.id'), nullable=False),
        sa.Column('sequence', sa.Integer, nullable=False),
        sa.Column('status', sa.String(100), nullable=False),
        sa.Column('location', sa.String(200), nullable=False),
        sa.Column('date', sa.String(30), nullable=False),
        sa.Column('time', sa.String(30), nullable=False),
        sa.Column('timestamp', sa.BigInteger, nullable=False),
        sa.Column('note', sa.String(500), nullable=True),
        sa.UniqueConstraint('shipment_id', 'sequence', name='uq_tracking_events_shipment_sequence')
    )
    op.create_index('ix_tracking_events_shipment_id', 'tracking_events', ['shipment_id'])
    op.create_table(
        'user_roles',
        sa.Column('identity', sa.String(200), primary_key=True),
        sa.Column('role', sa.String(16), nullable=False)
    )
    op.create_table(
        'user_profiles',
        sa.Column('identity', sa.String(200), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True)
    )
    bootstrap = op.create_table(
        'bootstrap_state',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('consumed', sa.Boolean, nullable=False),
        sa.Column('admin_identity', sa.String(200), nullable=True),
        sa.Column('consumed_at', sa.BigInteger, nullable=True)
    )
    sequence = op.create_table(
        'tracking_sequence',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('value', sa.BigInteger, nullable=False)
    )
    op.bulk_insert(bootstrap, [{'id': 1, 'consumed': False}])
    op.bulk_insert(sequence, [{'id': 1, 'value': 0}])

def downgrade():
    op.drop_table('tracking_sequence')
    op.drop_table('bootstrap_state')
    op.drop_table('user_profiles')
    op.drop_table('user_roles')
    op.drop_index('ix_tracking_events_shipment_id', table_name='tracking_events')
    op.drop_table('tracking_events')
    op.drop_index('ix_shipments_tracking_number', table_name='shipments')
    op.drop_table('shipments')
