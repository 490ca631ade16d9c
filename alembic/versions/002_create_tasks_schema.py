"""create tasks schema

Revision ID: 002
Revises: 001
Create Date: 2026-10-19

"""
from alembic import op

revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute('CREATE SCHEMA IF NOT EXISTS tasks')

    op.execute("""
        CREATE TABLE IF NOT EXISTS tasks.tasks (
            task_id             BIGSERIAL PRIMARY KEY,
            user_id             BIGINT NOT NULL REFERENCES auth.users(user_id) ON DELETE CASCADE,
            title               VARCHAR(255) NOT NULL,
            description         TEXT,
            completed           BOOLEAN NOT NULL DEFAULT FALSE,
            priority            VARCHAR(10) NOT NULL DEFAULT 'medium',
            due_date            TIMESTAMP,
            created_at          TIMESTAMP NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMP NOT NULL DEFAULT NOW(),
            CONSTRAINT check_task_priority CHECK (priority IN ('low', 'medium', 'high', 'urgent'))
        )
    """)

    op.create_index('idx_tasks_user_id', 'tasks', ['user_id'], schema='tasks')
    op.create_index('idx_tasks_due_date', 'tasks', ['due_date'], schema='tasks')

    op.execute("""
        CREATE TRIGGER trig_tasks_updated_at
            BEFORE UPDATE ON tasks.tasks
            FOR EACH ROW
            EXECUTE FUNCTION auth.update_updated_at()
    """)


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS trig_tasks_updated_at ON tasks.tasks")

    op.drop_index('idx_tasks_due_date', table_name='tasks', schema='tasks')
    op.drop_index('idx_tasks_user_id', table_name='tasks', schema='tasks')

    op.execute("DROP TABLE IF EXISTS tasks.tasks")
    op.execute("DROP SCHEMA IF EXISTS tasks")
