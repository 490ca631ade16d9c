import os
import subprocess
import sys
import pytest
import tasksync_api.models.base
from tasksync_api.models.refresh_token import RefreshToken
from tasksync_api.models.task import Task
from tasksync_api.models.user import User

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


class TestModels:
    @pytest.mark.parametrize("module", [
        "tasksync_api.models.user",
        "tasksync_api.models.refresh_token",
        "tasksync_api.models.task",
        "tasksync_api.models",
    ])
    def test_model_module_imports_in_fresh_interpreter(self, module):
        result = subprocess.run(
            [sys.executable, "-c", f"import {module}"],
            cwd=ROOT,
            capture_output=True,
            text=True
        )
        assert result.returncode == 0, result.stderr

    def test_tables_registered_on_shared_metadata(self):
        tables = tasksync_api.models.base.Base.metadata.tables
        assert {"auth.users", "auth.refresh_tokens", "tasks.tasks"} <= set(tables)
        assert User.__table__.schema == "auth"
        assert RefreshToken.__table__.schema == "auth"
        assert Task.__table__.schema == "tasks"
