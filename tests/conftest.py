import pytest
import yaml
from pathlib import Path
from batchsum.config.models import AppConfig
from batchsum.infrastructure.event_bus import EventBus

# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def sample_config():
    """Returns a sample AppConfig object for testing."""
    return AppConfig(
        general={
            "concurrency": 4,
            "chunk_size": 8,
            "debug": False,
            "strict_durability": False,
            "show_progress": False,
        },
        naming={
            "pending_prefix": "r_",
            "done_prefix": "d_",
            "failed_prefix": "f_",
            "log_name": "log.json",
            "tmp_log_name": "log.tmp",
        },
    )

@pytest.fixture
def spelled_out_config():
    """Config using the pending_/done_/failed_ folder markers."""
    return AppConfig(
        general={"concurrency": 2, "show_progress": False},
        naming={
            "pending_prefix": "pending_",
            "done_prefix": "done_",
            "failed_prefix": "failed_",
        },
    )

@pytest.fixture
def config_yaml_path(tmp_path):
    """Creates a temporary YAML config file."""
    conf_dir = tmp_path / "conf"
    conf_dir.mkdir()
    conf_file = conf_dir / "batchsum.yaml"

    content = {
        'general': {
            'concurrency': 3,
            'chunk_size': 1024,
            'debug': False,
            'strict_durability': True,
            'show_progress': False,
        },
        'naming': {
            'pending_prefix': 'pending_',
            'done_prefix': 'done_',
            'failed_prefix': 'failed_',
        },
        'input_dir': str(tmp_path / "input"),
    }

    with open(conf_file, 'w') as f:
        yaml.dump(content, f)

    return conf_file

# ============================================================================
# EventBus Fixtures
# ============================================================================

@pytest.fixture
def event_bus():
    """Returns a fresh EventBus instance."""
    return EventBus()

# ============================================================================
# File System Fixtures
# ============================================================================

@pytest.fixture
def input_dir(tmp_path):
    """Creates an empty input directory."""
    d = tmp_path / "input"
    d.mkdir()
    return d

@pytest.fixture
def make_folder(input_dir):
    """Factory creating a work folder with {filename: bytes} content."""
    def _make(name: str, files: dict = None) -> Path:
        folder = input_dir / name
        folder.mkdir()
        for filename, content in (files or {}).items():
            (folder / filename).write_bytes(content)
        return folder
    return _make



def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
