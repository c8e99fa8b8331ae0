"""Test basic imports and setup."""

def test_import():
    """Test that the package can be imported."""
    import transcripts2fasta
    assert transcripts2fasta.__version__ == "1.0.0"


def test_dependencies():
    """Test that core dependencies are available."""
    import requests
    import click
    import pandas
    import sqlalchemy
    import pymysql
    import Bio

    # Basic smoke test
    assert requests.__version__
    assert click.__version__
    assert pandas.__version__
    assert sqlalchemy.__version__
    assert pymysql.__version__
    assert Bio.__version__
