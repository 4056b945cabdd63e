"""
Shared fixtures for the site log assistant tests.
"""

import pytest

from sitelog.store import ActionItem, JsonActionItemStore
from sitelog.store.json_store import StoreState


@pytest.fixture
def json_store(tmp_path):
    """JSON store holding two known action items."""
    store_file = tmp_path / "action_items.json"
    state = StoreState(
        project_id="proj_001",
        action_items=[
            ActionItem(id="abc-1", title="RFI fire penetration", project_id="proj_001",
                       status="open", created_at="2026-10-01T08:00:00"),
            ActionItem(id="abc-2", title="Drywall order", project_id="proj_001",
                       status="in_progress", priority="high", assigned_to="Sam",
                       created_at="2026-10-02T08:00:00")
        ]
    )
    store_file.write_text(state.model_dump_json(indent=2))
    return JsonActionItemStore(str(store_file))
