"""Tests for logstash_layout package."""


def test_package_imports():
    """Test that the package can be imported successfully."""
    import logstash_layout

    assert logstash_layout is not None


def test_package_version():
    """Test that the package has a version string."""
    from logstash_layout import __version__

    assert __version__ == "0.1.0"


def test_public_api():
    """Test that the main entry points are exported."""
    from logstash_layout import EventLayout, LogstashFormatter, SchemaVersion

    assert EventLayout is not None
    assert LogstashFormatter is not None
    assert SchemaVersion.V1.value == "v1"
