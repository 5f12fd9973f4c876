"""
Tests for collector configuration

Author: uldyssian-sh
License: MIT
"""

import json

import pytest

from vplc_collector.config import CollectorSettings, load_device_records
from vplc_collector.exceptions import ConfigurationError

ACCESS_LIST = {
    "vplcs": [
        {
            "name": "line-1",
            "loginUrl": "https://10.0.0.5/api/v2/auth/login",
            "apiUrl": "https://10.0.0.5/api/v2/",
            "user": "monitor",
            "password": "secret",
        },
        {
            "name": "line-2",
            "loginUrl": "https://10.0.0.6/api/v2/auth/login",
            "apiUrl": "https://10.0.0.6/api/v2",
            "user": "monitor",
            "password": "secret",
        },
    ]
}


class TestCollectorSettings:
    """Test CollectorSettings"""

    def test_default_values(self):
        settings = CollectorSettings.from_env({})
        assert settings.access_file == ""
        assert settings.host == "0.0.0.0"
        assert settings.port == 2112
        assert settings.interval == 10.0
        assert settings.request_timeout == 8.0
        assert settings.verify_ssl == False
        assert settings.log_level == "INFO"
        assert settings.log_format == "json"

    def test_environment_values(self):
        settings = CollectorSettings.from_env({
            "VPLC_ACCESS_FILE": "/etc/vplc/access.json",
            "VPLC_COLLECTOR_PORT": "9100",
            "VPLC_SCRAPE_INTERVAL": "2.5",
            "VPLC_REQUEST_TIMEOUT": "2",
            "VPLC_VERIFY_SSL": "true",
            "VPLC_LOG_LEVEL": "debug",
            "VPLC_LOG_FORMAT": "console",
        })
        assert settings.access_file == "/etc/vplc/access.json"
        assert settings.port == 9100
        assert settings.interval == 2.5
        assert settings.request_timeout == 2.0
        assert settings.verify_ssl == True
        assert settings.log_level == "DEBUG"
        assert settings.log_format == "console"

    def test_overrides_take_precedence(self):
        settings = CollectorSettings.from_env(
            {"VPLC_COLLECTOR_PORT": "9100"}, port=9200, host=None)
        assert settings.port == 9200
        assert settings.host == "0.0.0.0"

    def test_invalid_number(self):
        with pytest.raises(ConfigurationError):
            CollectorSettings.from_env({"VPLC_COLLECTOR_PORT": "metrics"})

    @pytest.mark.parametrize("kwargs", [
        {"port": 0},
        {"port": 70000},
        {"interval": 0},
        {"request_timeout": -1},
        {"log_format": "xml"},
        {"log_level": "verbose"},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ConfigurationError):
            CollectorSettings(**kwargs)


class TestLoadDeviceRecords:
    """Test access file loading"""

    def test_load_json(self, tmp_path):
        path = tmp_path / "access.json"
        path.write_text(json.dumps(ACCESS_LIST))

        records = load_device_records(str(path))

        assert [record.name for record in records] == ["line-1", "line-2"]
        assert records[0].login_url == "https://10.0.0.5/api/v2/auth/login"
        assert records[0].api_url == "https://10.0.0.5/api/v2"
        assert records[0].username == "monitor"
        assert records[0].password == "secret"

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "access.yaml"
        path.write_text(
            "vplcs:\n"
            "  - name: line-1\n"
            "    loginUrl: https://10.0.0.5/login\n"
            "    apiUrl: https://10.0.0.5/api\n"
            "    user: monitor\n"
            "    password: secret\n"
        )

        records = load_device_records(str(path))

        assert len(records) == 1
        assert records[0].api_url == "https://10.0.0.5/api"

    def test_password_not_in_repr(self, tmp_path):
        path = tmp_path / "access.json"
        path.write_text(json.dumps(ACCESS_LIST))
        record = load_device_records(str(path))[0]
        assert "secret" not in repr(record)

    def test_records_are_immutable(self, tmp_path):
        path = tmp_path / "access.json"
        path.write_text(json.dumps(ACCESS_LIST))
        record = load_device_records(str(path))[0]
        with pytest.raises(Exception):
            record.name = "other"

    @pytest.mark.parametrize("path", [None, ""])
    def test_missing_path(self, path):
        with pytest.raises(ConfigurationError):
            load_device_records(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_device_records(str(tmp_path / "absent.json"))

    @pytest.mark.parametrize("content", [
        "{not json",
        "[]",
        json.dumps({"vplcs": []}),
        json.dumps({"devices": ACCESS_LIST["vplcs"]}),
        json.dumps({"vplcs": [{"name": "line-1"}]}),
        json.dumps({"vplcs": ACCESS_LIST["vplcs"] + ACCESS_LIST["vplcs"][:1]}),
    ])
    def test_invalid_content(self, tmp_path, content):
        path = tmp_path / "access.json"
        path.write_text(content)
        with pytest.raises(ConfigurationError):
            load_device_records(str(path))
