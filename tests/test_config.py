import pytest

from tangerine_reporting.config import load_config, validate_config

CONFIG = """
project:
  name: tangerine-reporting
couchdb:
  base_db: ${TEST_BASE_DB:http://localhost:5984/tangerine}
  result_db: http://localhost:5984/results
output:
  csv_directory: exports
"""


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    for var in ('BASE_DB_URL', 'RESULT_DB_URL', 'COUCHDB_TIMEOUT', 'CSV_OUTPUT_DIR', 'ENVIRONMENT', 'TEST_BASE_DB'):
        monkeypatch.delenv(var, raising=False)
    path = tmp_path / 'config.yml'
    path.write_text(CONFIG)
    return path


def test_defaults_are_substituted(config_file):
    config = load_config(str(config_file))

    assert config['couchdb']['base_db'] == 'http://localhost:5984/tangerine'
    assert config['couchdb']['design_doc'] == 'ojai'
    assert config['couchdb']['timeout'] == 30
    assert config['output']['csv_directory'] == 'exports'
    assert config['environment'] == 'development'
    assert validate_config(config) is True


def test_environment_overrides(config_file, monkeypatch):
    monkeypatch.setenv('TEST_BASE_DB', 'http://couch:5984/from_default')
    monkeypatch.setenv('RESULT_DB_URL', 'http://couch:5984/override')
    monkeypatch.setenv('COUCHDB_TIMEOUT', 'not-a-number')

    config = load_config(str(config_file))

    assert config['couchdb']['base_db'] == 'http://couch:5984/from_default'
    assert config['couchdb']['result_db'] == 'http://couch:5984/override'
    assert config['couchdb']['timeout'] == 30


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / 'nope.yml'))


def test_validate_config_requires_databases():
    with pytest.raises(ValueError, match='couchdb.result_db'):
        validate_config({'project': {'name': 'x'}, 'couchdb': {'base_db': 'http://x'}})

    with pytest.raises(ValueError, match='is empty'):
        validate_config({'project': {'name': ''}})
