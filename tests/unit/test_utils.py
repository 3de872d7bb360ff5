"""
Unit tests: shared driver utilities.

Tests the request-shaping helpers shared by every driver, no Docker needed.
"""

import time

import pytest


class TestEnvUtils:
    """Environment variable helpers"""

    @pytest.mark.parametrize(
        "key, expected",
        [
            ("9FOO-BAR", "_9FOOBAR"),
            ("FOO_BAR", "FOO_BAR"),
            ("foo.bar", "foobar"),
            ("my var", "myvar"),
            ("_private", "_private"),
            ("1", "_1"),
            ("-9x", "_9x"),
            ("ключ_KEY", "_KEY"),
            ("a$b{c}", "abc"),
        ],
    )
    def test_sanitize_env_key(self, key, expected):
        """Test sanitize_env_key normalization"""
        from orchestration.drivers.core.utils import sanitize_env_key

        assert sanitize_env_key(key) == expected

    def test_sanitize_env_key_empty(self):
        """Nothing usable left is a validation error"""
        from orchestration.drivers.core.utils import sanitize_env_key
        from orchestration.exceptions import ValidationError

        with pytest.raises(ValidationError):
            sanitize_env_key("-.-")

        with pytest.raises(ValidationError):
            sanitize_env_key("")

    def test_build_env(self):
        """Test build_env sanitizes keys and stringifies values"""
        from orchestration.drivers.core.utils import build_env

        assert build_env({"9FOO-BAR": "x", "EMPTY": None, "NUM": 5}) == {
            "_9FOOBAR": "x",
            "EMPTY": "",
            "NUM": "5",
        }
        assert build_env(None) == {}

    def test_build_env_collision_last_wins(self):
        """Keys collapsing onto one name keep the later value"""
        from orchestration.drivers.core.utils import build_env

        assert build_env({"A-B": "1", "AB": "2"}) == {"AB": "2"}


class TestLabelUtils:
    """Namespace label helpers"""

    def test_build_labels(self, settings):
        """Namespace labels are added to caller labels"""
        from orchestration.drivers.core.utils import build_labels

        before = int(time.time())
        labels = build_labels(settings, {"app": "web"})

        assert labels["app"] == "web"
        assert labels["test-type"] == "runtime"
        assert before <= int(labels["test-created"]) <= int(time.time())

    def test_namespace_labels_win(self, settings):
        """Caller labels cannot override the namespace labels"""
        from orchestration.drivers.core.utils import build_labels

        labels = build_labels(settings, {"test-type": "other"})

        assert labels["test-type"] == "runtime"


class TestFilterUtils:
    """Filter validation"""

    def test_validate_filters(self):
        from orchestration.drivers.core.utils import validate_filters

        assert validate_filters({"label": "app=web", "status": "running"}) == {
            "label": "app=web",
            "status": "running",
        }
        assert validate_filters(None) == {}
        assert validate_filters({}) == {}

    @pytest.mark.parametrize(
        "filters",
        [
            {"": "x"},
            {"label=app": "web"},
            {"status": ""},
            {"status": None},
        ],
    )
    def test_invalid_filters(self, filters):
        from orchestration.drivers.core.utils import validate_filters
        from orchestration.exceptions import ValidationError

        with pytest.raises(ValidationError):
            validate_filters(filters)


class TestResourceUtils:
    """Resource limit and option helpers"""

    def test_memory_limit_bytes(self):
        from orchestration.drivers.core.utils import memory_limit_bytes

        assert memory_limit_bytes(256) == 256_000_000
        assert memory_limit_bytes(0) == 0

    def test_nano_cpus(self):
        from orchestration.drivers.core.utils import nano_cpus

        assert nano_cpus(1.5) == 1_500_000_000
        assert nano_cpus(0.25) == 250_000_000
        assert nano_cpus(0.3) == 300_000_000

    def test_resolve_timeout(self):
        from orchestration.drivers.core.utils import resolve_timeout

        assert resolve_timeout(-1) is None
        assert resolve_timeout(None) is None
        assert resolve_timeout(0) is None
        assert resolve_timeout(5) == 5.0

    def test_split_volume(self):
        from orchestration.drivers.core.utils import split_volume
        from orchestration.exceptions import ValidationError

        assert split_volume("/host:/data") == ["/host", "/data"]
        assert split_volume("/host:/data:ro") == ["/host", "/data", "ro"]

        with pytest.raises(ValidationError):
            split_volume("/only-host")

        with pytest.raises(ValidationError):
            split_volume("/host::ro")
