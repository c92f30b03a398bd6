"""initial_schema

Revision ID: 3f1c2a9d7e10
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# Import custom types
from projekt_l.db.models import GUID, UTCDateTime


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7e10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the Projekt L schema."""

    # Users
    op.create_table('users',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('display_name', sa.String(length=100), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('password_salt', sa.String(length=64), nullable=False),
        sa.Column('total_xp', sa.Integer(), nullable=False),
        sa.Column('created_at', UTCDateTime(), nullable=False),
        sa.Column('updated_at', UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )

    # Skills
    op.create_table('skill_domains',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('user_id', GUID(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('icon', sa.String(length=10), nullable=True),
        sa.Column('color', sa.String(length=20), nullable=True),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('faction_key', sa.String(length=20), nullable=True),
        sa.Column('created_at', UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'name', name='uq_domain_name_per_user')
    )

    op.create_table('skills',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('user_id', GUID(), nullable=False),
        sa.Column('domain_id', GUID(), nullable=False),
        sa.Column('parent_skill_id', GUID(), nullable=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('icon', sa.String(length=10), nullable=True),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('created_at', UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['domain_id'], ['skill_domains.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['parent_skill_id'], ['skills.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_skill_domain', 'skills', ['domain_id'], unique=False)
    op.create_index('ix_skill_parent', 'skills', ['parent_skill_id'], unique=False)

    op.create_table('user_skills',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('user_id', GUID(), nullable=False),
        sa.Column('skill_id', GUID(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('current_xp', sa.Integer(), nullable=False),
        sa.Column('last_used', UTCDateTime(), nullable=True),
        sa.Column('created_at', UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['skill_id'], ['skills.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'skill_id', name='uq_user_skill')
    )

    op.create_table('experiences',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('user_id', GUID(), nullable=False),
        sa.Column('skill_id', GUID(), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=False),
        sa.Column('xp_gained', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('faction_id', sa.String(length=20), nullable=True),
        sa.Column('created_at', UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['skill_id'], ['skills.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_experience_skill_created', 'experiences', ['skill_id', 'created_at'], unique=False)
    op.create_index('ix_experience_user_date', 'experiences', ['user_id', 'date'], unique=False)

    op.create_table('skill_connections',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('user_id', GUID(), nullable=False),
        sa.Column('source_skill_id', GUID(), nullable=False),
        sa.Column('target_skill_id', GUID(), nullable=False),
        sa.Column('connection_type', sa.String(length=20), nullable=False),
        sa.Column('strength', sa.Integer(), nullable=False),
        sa.Column('created_at', UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['source_skill_id'], ['skills.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['target_skill_id'], ['skills.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'source_skill_id', 'target_skill_id', 'connection_type', name='uq_skill_connection'
        ),
        sa.CheckConstraint('source_skill_id != target_skill_id', name='ck_connection_not_self'),
        sa.CheckConstraint('strength BETWEEN 1 AND 10', name='ck_connection_strength')
    )

    op.create_table('graph_views',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('user_id', GUID(), nullable=False),
        sa.Column('domain_id', GUID(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('viewport_x', sa.Float(), nullable=False),
        sa.Column('viewport_y', sa.Float(), nullable=False),
        sa.Column('viewport_zoom', sa.Float(), nullable=False),
        sa.Column('direction', sa.String(length=2), nullable=False),
        sa.Column('node_positions', sa.JSON(), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False),
        sa.Column('created_at', UTCDateTime(), nullable=False),
        sa.Column('updated_at', UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['domain_id'], ['skill_domains.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_graph_view_user_domain', 'graph_views', ['user_id', 'domain_id'], unique=False)

    # Factions
    op.create_table('user_faction_stats',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('user_id', GUID(), nullable=False),
        sa.Column('faction_id', sa.String(length=20), nullable=False),
        sa.Column('total_xp', sa.Integer(), nullable=False),
        sa.Column('weekly_xp', sa.Integer(), nullable=False),
        sa.Column('monthly_xp', sa.Integer(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('last_activity', UTCDateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'faction_id', name='uq_user_faction')
    )

    # Habits
    op.create_table('habits',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('user_id', GUID(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('icon', sa.String(length=10), nullable=False),
        sa.Column('habit_type', sa.String(length=10), nullable=False),
        sa.Column('frequency', sa.String(length=20), nullable=False),
        sa.Column('target_days', sa.JSON(), nullable=False),
        sa.Column('xp_per_completion', sa.Integer(), nullable=False),
        sa.Column('faction_id', sa.String(length=20), nullable=True),
        sa.Column('current_streak', sa.Integer(), nullable=False),
        sa.Column('longest_streak', sa.Integer(), nullable=False),
        sa.Column('total_completions', sa.Integer(), nullable=False),
        sa.Column('streak_start_date', sa.Date(), nullable=True),
        sa.Column('resistance_count', sa.Integer(), nullable=False),
        sa.Column('last_resistance_at', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', UTCDateTime(), nullable=False),
        sa.Column('updated_at', UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_habit_user_active', 'habits', ['user_id', 'is_active'], unique=False)

    op.create_table('habit_factions',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('habit_id', GUID(), nullable=False),
        sa.Column('faction_id', sa.String(length=20), nullable=False),
        sa.Column('weight', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['habit_id'], ['habits.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('habit_id', 'faction_id', name='uq_habit_faction')
    )

    op.create_table('habit_logs',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('habit_id', GUID(), nullable=False),
        sa.Column('user_id', GUID(), nullable=False),
        sa.Column('completed', sa.Boolean(), nullable=False),
        sa.Column('notes', sa.String(length=500), nullable=True),
        sa.Column('xp_gained', sa.Integer(), nullable=False),
        sa.Column('logged_at', UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(['habit_id'], ['habits.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_habit_log_habit_logged', 'habit_logs', ['habit_id', 'logged_at'], unique=False)

    op.create_table('streak_insurance_tokens',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('user_id', GUID(), nullable=False),
        sa.Column('token_type', sa.String(length=20), nullable=False),
        sa.Column('reason', sa.String(length=200), nullable=True),
        sa.Column('granted_at', UTCDateTime(), nullable=False),
        sa.Column('expires_at', UTCDateTime(), nullable=False),
        sa.Column('used_at', UTCDateTime(), nullable=True),
        sa.Column('used_for_habit_id', GUID(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['used_for_habit_id'], ['habits.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_streak_token_user_expires', 'streak_insurance_tokens', ['user_id', 'expires_at'], unique=False)

    # Quests
    op.create_table('quests',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('user_id', GUID(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('xp_reward', sa.Integer(), nullable=False),
        sa.Column('quest_type', sa.String(length=20), nullable=False),
        sa.Column('difficulty', sa.String(length=20), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('required_actions', sa.Integer(), nullable=False),
        sa.Column('completed_actions', sa.Integer(), nullable=False),
        sa.Column('progress', sa.Integer(), nullable=False),
        sa.Column('skill_id', GUID(), nullable=True),
        sa.Column('faction_id', sa.String(length=20), nullable=True),
        sa.Column('target_faction_ids', sa.JSON(), nullable=False),
        sa.Column('target_skill_ids', sa.JSON(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('expires_at', UTCDateTime(), nullable=True),
        sa.Column('completed_at', UTCDateTime(), nullable=True),
        sa.Column('created_at', UTCDateTime(), nullable=False),
        sa.Column('updated_at', UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['skill_id'], ['skills.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_quest_user_status', 'quests', ['user_id', 'status'], unique=False)

    op.create_table('quest_actions',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('quest_id', GUID(), nullable=False),
        sa.Column('user_id', GUID(), nullable=False),
        sa.Column('action_type', sa.String(length=20), nullable=False),
        sa.Column('notes', sa.String(length=500), nullable=True),
        sa.Column('xp_gained', sa.Integer(), nullable=False),
        sa.Column('created_at', UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(['quest_id'], ['quests.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )

    # Contacts
    op.create_table('contacts',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('user_id', GUID(), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('nickname', sa.String(length=100), nullable=True),
        sa.Column('photo_url', sa.String(length=500), nullable=True),
        sa.Column('relationship_type', sa.String(length=30), nullable=False),
        sa.Column('relationship_category', sa.String(length=20), nullable=False),
        sa.Column('trust_level', sa.Integer(), nullable=False),
        sa.Column('relationship_level', sa.Integer(), nullable=False),
        sa.Column('current_xp', sa.Integer(), nullable=False),
        sa.Column('birthday', sa.Date(), nullable=True),
        sa.Column('anniversary', sa.Date(), nullable=True),
        sa.Column('met_date', sa.Date(), nullable=True),
        sa.Column('met_context', sa.String(length=500), nullable=True),
        sa.Column('contact_info', sa.JSON(), nullable=False),
        sa.Column('shared_interests', sa.JSON(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('last_interaction_at', UTCDateTime(), nullable=True),
        sa.Column('interaction_count', sa.Integer(), nullable=False),
        sa.Column('avg_interaction_quality', sa.Float(), nullable=True),
        sa.Column('is_favorite', sa.Boolean(), nullable=False),
        sa.Column('is_archived', sa.Boolean(), nullable=False),
        sa.Column('reminder_frequency_days', sa.Integer(), nullable=True),
        sa.Column('suppress_attention_reminder', sa.Boolean(), nullable=False),
        sa.Column('created_at', UTCDateTime(), nullable=False),
        sa.Column('updated_at', UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('trust_level BETWEEN 0 AND 100', name='ck_contact_trust')
    )
    op.create_index('ix_contact_user_archived', 'contacts', ['user_id', 'is_archived'], unique=False)

    op.create_table('contact_interactions',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('contact_id', GUID(), nullable=False),
        sa.Column('user_id', GUID(), nullable=False),
        sa.Column('interaction_type', sa.String(length=20), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=True),
        sa.Column('description', sa.String(length=2000), nullable=True),
        sa.Column('quality', sa.String(length=20), nullable=False),
        sa.Column('xp_gained', sa.Integer(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=True),
        sa.Column('occurred_at', UTCDateTime(), nullable=False),
        sa.Column('location', sa.String(length=200), nullable=True),
        sa.Column('participants', sa.JSON(), nullable=False),
        sa.Column('related_skill_id', GUID(), nullable=True),
        sa.Column('created_at', UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(['contact_id'], ['contacts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['related_skill_id'], ['skills.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_interaction_contact_occurred', 'contact_interactions', ['contact_id', 'occurred_at'], unique=False)

    # Geist
    op.create_table('mood_logs',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('user_id', GUID(), nullable=False),
        sa.Column('mood', sa.String(length=20), nullable=False),
        sa.Column('note', sa.String(length=500), nullable=True),
        sa.Column('created_at', UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_mood_user_created', 'mood_logs', ['user_id', 'created_at'], unique=False)

    op.create_table('journal_entries',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('user_id', GUID(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('prompt', sa.String(length=500), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('word_count', sa.Integer(), nullable=False),
        sa.Column('created_at', UTCDateTime(), nullable=False),
        sa.Column('updated_at', UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )

    # Currency and activity feed
    op.create_table('user_currency',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('user_id', GUID(), nullable=False),
        sa.Column('gold', sa.Integer(), nullable=False),
        sa.Column('gems', sa.Integer(), nullable=False),
        sa.Column('total_gold_earned', sa.Integer(), nullable=False),
        sa.Column('total_gold_spent', sa.Integer(), nullable=False),
        sa.Column('updated_at', UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id')
    )

    op.create_table('currency_transactions',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('user_id', GUID(), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(length=10), nullable=False),
        sa.Column('transaction_type', sa.String(length=30), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('source_type', sa.String(length=50), nullable=True),
        sa.Column('source_id', sa.String(length=64), nullable=True),
        sa.Column('created_at', UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_currency_tx_user_created', 'currency_transactions', ['user_id', 'created_at'], unique=False)

    op.create_table('activity_log',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('user_id', GUID(), nullable=False),
        sa.Column('activity_type', sa.String(length=30), nullable=False),
        sa.Column('faction_id', sa.String(length=20), nullable=True),
        sa.Column('title', sa.String(length=300), nullable=False),
        sa.Column('description', sa.String(length=1000), nullable=True),
        sa.Column('xp_amount', sa.Integer(), nullable=False),
        sa.Column('related_entity_type', sa.String(length=50), nullable=True),
        sa.Column('related_entity_id', sa.String(length=64), nullable=True),
        sa.Column('details', sa.JSON(), nullable=False),
        sa.Column('occurred_at', UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_activity_user_occurred', 'activity_log', ['user_id', 'occurred_at'], unique=False)
    op.create_index('ix_activity_user_faction', 'activity_log', ['user_id', 'faction_id'], unique=False)

    # Finance
    op.create_table('accounts',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('user_id', GUID(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('account_type', sa.String(length=20), nullable=False),
        sa.Column('institution', sa.String(length=100), nullable=True),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('current_balance', sa.Float(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_excluded_from_net_worth', sa.Boolean(), nullable=False),
        sa.Column('icon', sa.String(length=10), nullable=True),
        sa.Column('color', sa.String(length=20), nullable=True),
        sa.Column('credit_limit', sa.Float(), nullable=True),
        sa.Column('interest_rate', sa.Float(), nullable=True),
        sa.Column('created_at', UTCDateTime(), nullable=False),
        sa.Column('updated_at', UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('finance_transactions',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('user_id', GUID(), nullable=False),
        sa.Column('account_id', GUID(), nullable=False),
        sa.Column('transaction_type', sa.String(length=20), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=True),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('occurred_at', sa.Date(), nullable=False),
        sa.Column('to_account_id', GUID(), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('created_at', UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['to_account_id'], ['accounts.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_finance_tx_account_occurred', 'finance_transactions', ['account_id', 'occurred_at'], unique=False)
    op.create_index('ix_finance_tx_user_occurred', 'finance_transactions', ['user_id', 'occurred_at'], unique=False)

    op.create_table('savings_goals',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('user_id', GUID(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('icon', sa.String(length=10), nullable=False),
        sa.Column('color', sa.String(length=20), nullable=False),
        sa.Column('target_amount', sa.Float(), nullable=False),
        sa.Column('current_amount', sa.Float(), nullable=False),
        sa.Column('monthly_contribution', sa.Float(), nullable=False),
        sa.Column('interest_rate', sa.Float(), nullable=False),
        sa.Column('compounds_per_year', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('target_date', sa.Date(), nullable=True),
        sa.Column('is_achieved', sa.Boolean(), nullable=False),
        sa.Column('achieved_at', UTCDateTime(), nullable=True),
        sa.Column('reward_paid', sa.Boolean(), nullable=False),
        sa.Column('created_at', UTCDateTime(), nullable=False),
        sa.Column('updated_at', UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )

    # Achievements and weekly reports
    op.create_table('user_achievements',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('user_id', GUID(), nullable=False),
        sa.Column('achievement_key', sa.String(length=50), nullable=False),
        sa.Column('current_progress', sa.Integer(), nullable=False),
        sa.Column('is_unlocked', sa.Boolean(), nullable=False),
        sa.Column('unlocked_at', UTCDateTime(), nullable=True),
        sa.Column('created_at', UTCDateTime(), nullable=False),
        sa.Column('updated_at', UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'achievement_key', name='uq_user_achievement')
    )

    op.create_table('weekly_reports',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('user_id', GUID(), nullable=False),
        sa.Column('week_start', sa.Date(), nullable=False),
        sa.Column('week_end', sa.Date(), nullable=False),
        sa.Column('top_wins', sa.JSON(), nullable=False),
        sa.Column('attention_area', sa.String(length=500), nullable=True),
        sa.Column('recognized_pattern', sa.String(length=500), nullable=True),
        sa.Column('recommendation', sa.String(length=1000), nullable=True),
        sa.Column('stats_snapshot', sa.JSON(), nullable=False),
        sa.Column('read_at', UTCDateTime(), nullable=True),
        sa.Column('created_at', UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'week_start', name='uq_weekly_report_week')
    )


def downgrade() -> None:
    """Drop the Projekt L schema."""

    op.drop_table('weekly_reports')
    op.drop_table('user_achievements')

    op.drop_table('savings_goals')
    op.drop_index('ix_finance_tx_user_occurred', table_name='finance_transactions')
    op.drop_index('ix_finance_tx_account_occurred', table_name='finance_transactions')
    op.drop_table('finance_transactions')
    op.drop_table('accounts')

    op.drop_index('ix_activity_user_faction', table_name='activity_log')
    op.drop_index('ix_activity_user_occurred', table_name='activity_log')
    op.drop_table('activity_log')
    op.drop_index('ix_currency_tx_user_created', table_name='currency_transactions')
    op.drop_table('currency_transactions')
    op.drop_table('user_currency')

    op.drop_table('journal_entries')
    op.drop_index('ix_mood_user_created', table_name='mood_logs')
    op.drop_table('mood_logs')

    op.drop_index('ix_interaction_contact_occurred', table_name='contact_interactions')
    op.drop_table('contact_interactions')
    op.drop_index('ix_contact_user_archived', table_name='contacts')
    op.drop_table('contacts')

    op.drop_table('quest_actions')
    op.drop_index('ix_quest_user_status', table_name='quests')
    op.drop_table('quests')

    op.drop_index('ix_streak_token_user_expires', table_name='streak_insurance_tokens')
    op.drop_table('streak_insurance_tokens')
    op.drop_index('ix_habit_log_habit_logged', table_name='habit_logs')
    op.drop_table('habit_logs')
    op.drop_table('habit_factions')
    op.drop_index('ix_habit_user_active', table_name='habits')
    op.drop_table('habits')

    op.drop_table('user_faction_stats')

    op.drop_index('ix_graph_view_user_domain', table_name='graph_views')
    op.drop_table('graph_views')
    op.drop_table('skill_connections')
    op.drop_index('ix_experience_user_date', table_name='experiences')
    op.drop_index('ix_experience_skill_created', table_name='experiences')
    op.drop_table('experiences')
    op.drop_table('user_skills')
    op.drop_index('ix_skill_parent', table_name='skills')
    op.drop_index('ix_skill_domain', table_name='skills')
    op.drop_table('skills')
    op.drop_table('skill_domains')

    op.drop_table('users')
