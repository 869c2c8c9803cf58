"""create promise tables

Revision ID: 3f1c2a9b7d10
Revises:
Create Date: 2026-10-19 10:12:41.318204

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '3f1c2a9b7d10'
down_revision = None
branch_labels = None
depends_on = None

reminder_time_enum = sa.Enum('morning', 'midday', 'evening', name='remindertimeenum')
visibility_enum = sa.Enum('private', 'witness', 'public', name='visibilityenum')
invitation_status_enum = sa.Enum('pending', 'accepted', 'declined', name='invitationstatusenum')


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('reminder_time', reminder_time_enum, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_users_email'), ['email'], unique=True)

    op.create_table(
        'promises',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('promise_text', sa.String(length=200), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('target_date', sa.DateTime(), nullable=True),
        sa.Column('completed', sa.Boolean(), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('is_eco_friendly', sa.Boolean(), nullable=False),
        sa.Column('witness_email', sa.String(length=255), nullable=True),
        sa.Column('visibility', visibility_enum, nullable=False),
        sa.Column('completion_reminder_sent', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('promises', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_promises_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_promises_created_at'), ['created_at'], unique=False)

    op.create_table(
        'accountability_invitations',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('partner_email', sa.String(length=255), nullable=False),
        sa.Column('promise_text', sa.String(length=200), nullable=False),
        sa.Column('status', invitation_status_enum, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('responded_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('accountability_invitations', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_accountability_invitations_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_accountability_invitations_partner_email'), ['partner_email'], unique=False)

    op.create_table(
        'accountability_partners',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'email', name='uix_user_partner_email')
    )


def downgrade():
    op.drop_table('accountability_partners')

    with op.batch_alter_table('accountability_invitations', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_accountability_invitations_partner_email'))
        batch_op.drop_index(batch_op.f('ix_accountability_invitations_user_id'))
    op.drop_table('accountability_invitations')

    with op.batch_alter_table('promises', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_promises_created_at'))
        batch_op.drop_index(batch_op.f('ix_promises_user_id'))
    op.drop_table('promises')

    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_users_email'))
    op.drop_table('users')

    invitation_status_enum.drop(op.get_bind(), checkfirst=True)
    visibility_enum.drop(op.get_bind(), checkfirst=True)
    reminder_time_enum.drop(op.get_bind(), checkfirst=True)
