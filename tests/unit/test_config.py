"""
Unit tests for layered configuration, logging setup and wiring.
"""

import io
import json
import logging
import os

import pytest
import yaml

from authority.config import (
    ConfigurationError,
    ConfigurationManager,
    DEFAULT_CONFIG,
    LOG_FORMAT,
    setup_logging,
)
from authority.service import IssuanceAuthority
from ledger.exceptions import LedgerError
from registry.concurrency import TxContext
from registry.events import EventType, JSONLinesSink, LoggingSink


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Run with an empty working directory and home."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for key in list(os.environ):
        if key.startswith("CAPMINT_"):
            monkeypatch.delenv(key)
    return tmp_path


class TestConfigurationManager:

    def test_defaults(self, isolated):
        manager = ConfigurationManager()
        assert manager.get('engine.version') == 1
        assert manager.get('crypto.hash') == 'sha256'
        assert manager.get('missing.key', 'fallback') == 'fallback'
        assert manager.get_sources() == ["defaults"]
        assert manager.validate() == []

    def test_profile(self, isolated):
        manager = ConfigurationManager(profile='production')
        assert manager.get('ledger.allow_faucet') is False
        assert manager.get('logging.level') == 'WARNING'
        assert "profile:production" in manager.get_sources()

    def test_unknown_profile(self, isolated):
        with pytest.raises(ConfigurationError):
            ConfigurationManager(profile='staging').load()

    def test_yaml_file_discovered(self, isolated):
        (isolated / '.capmint.yml').write_text(yaml.safe_dump({'engine': {'version': 3}}))
        manager = ConfigurationManager()
        assert manager.get('engine.version') == 3
        assert manager.get('crypto.hash') == 'sha256'

    def test_explicit_json_file(self, isolated):
        path = isolated / 'custom.json'
        path.write_text(json.dumps({'crypto': {'hash': 'sha3_256'}}))
        manager = ConfigurationManager(config_file=str(path))
        assert manager.get('crypto.hash') == 'sha3_256'

    def test_broken_file(self, isolated):
        path = isolated / 'broken.json'
        path.write_text("{")
        with pytest.raises(ConfigurationError):
            ConfigurationManager(config_file=str(path)).load()

    def test_environment_overrides_file(self, isolated):
        (isolated / '.capmint.yml').write_text(yaml.safe_dump({'engine': {'version': 3}}))
        manager = ConfigurationManager(environ={
            'CAPMINT_ENGINE_VERSION': '4',
            'CAPMINT_EVENTS_JSONL_PATH': '/tmp/events.jsonl',
            'CAPMINT_LEDGER_ALLOW_FAUCET': 'false',
            'OTHER_VAR': 'ignored',
        })
        assert manager.get('engine.version') == 4
        assert manager.get('events.jsonl_path') == '/tmp/events.jsonl'
        assert manager.get('ledger.allow_faucet') is False
        assert manager.get_sources()[-1] == "environment"

    def test_set_does_not_leak_into_defaults(self, isolated):
        manager = ConfigurationManager()
        manager.set('engine.version', 7)
        assert manager.get('engine.version') == 7
        assert DEFAULT_CONFIG['engine']['version'] == 1

    def test_validate_reports_problems(self, isolated):
        manager = ConfigurationManager(environ={
            'CAPMINT_ENGINE_VERSION': '0',
            'CAPMINT_CRYPTO_HASH': 'md5',
            'CAPMINT_LOGGING_LEVEL': 'LOUD',
        })
        problems = manager.validate()
        assert len(problems) == 3

    def test_save_round_trip(self, isolated):
        manager = ConfigurationManager()
        manager.set('engine.version', 5)
        path = manager.save()
        assert path.name == '.capmint.yml'
        assert ConfigurationManager().get('engine.version') == 5


class TestSetupLogging:

    def test_format_and_level(self):
        stream = io.StringIO()
        root = setup_logging('DEBUG', stream=stream)
        try:
            logging.getLogger('registry.manager').debug("hello")
            assert root.level == logging.DEBUG
            assert " - registry.manager - DEBUG - hello" in stream.getvalue()
            assert LOG_FORMAT.startswith('%(asctime)s')
        finally:
            for handler in list(root.handlers):
                if getattr(handler, '_capmint', False):
                    root.removeHandler(handler)
            root.setLevel(logging.WARNING)

    def test_repeated_setup_single_handler(self):
        setup_logging('INFO', stream=io.StringIO())
        root = setup_logging('INFO', stream=io.StringIO())
        ours = [h for h in root.handlers if getattr(h, '_capmint', False)]
        assert len(ours) == 1
        root.removeHandler(ours[0])


class TestFromConfig:

    def test_wires_sinks_and_version(self, isolated, monkeypatch):
        monkeypatch.setenv('CAPMINT_ENGINE_VERSION', '2')
        monkeypatch.setenv('CAPMINT_EVENTS_JSONL_PATH', str(isolated / 'events.jsonl'))
        monkeypatch.setenv('CAPMINT_EVENTS_LOG_EVENTS', 'true')

        authority = IssuanceAuthority.from_config()
        assert authority.compiled_version == 2
        assert any(isinstance(s, JSONLinesSink) for s in authority.emitter.sinks)
        assert any(isinstance(s, LoggingSink) for s in authority.emitter.sinks)

        _, version = authority.initialize(TxContext(sender="0xadmin"))
        assert version.version == 2
        lines = (isolated / 'events.jsonl').read_text().splitlines()
        assert json.loads(lines[0])['event_type'] == EventType.INITIALIZED.value

    def test_production_disables_faucet(self, isolated):
        authority = IssuanceAuthority.from_config(profile="production")
        with pytest.raises(LedgerError):
            authority.fund(TxContext(sender="0xadmin"), "0xadmin", 10)

    def test_invalid_configuration(self, isolated, monkeypatch):
        monkeypatch.setenv('CAPMINT_CRYPTO_HASH', 'md5')
        with pytest.raises(ConfigurationError):
            IssuanceAuthority.from_config()

    def test_restores_snapshot(self, isolated, monkeypatch):
        snapshot = isolated / 'state.json'
        first = IssuanceAuthority()
        first.initialize(TxContext(sender="0xadmin"))
        first.save(snapshot)

        monkeypatch.setenv('CAPMINT_STORAGE_SNAPSHOT_PATH', str(snapshot))
        restored = IssuanceAuthority.from_config()
        assert restored.version_id == first.version_id
