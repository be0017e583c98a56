from unittest.mock import patch
from click.testing import CliRunner
from didvc.commands.serve import serve
from didvc.config import settings


@patch("uvicorn.run")
def test_serve_default(mock_uvicorn_run):
    """Test `serve` with default parameters."""
    runner = CliRunner()
    result = runner.invoke(serve, [])

    assert result.exit_code == 0
    assert f"Starting server on http://{settings.host}:{settings.port}" in result.output
    mock_uvicorn_run.assert_called_once_with(
        "didvc.server:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_config=None,
        use_colors=False,
    )


@patch("uvicorn.run")
def test_serve_custom_params(mock_uvicorn_run):
    """Test `serve` with custom parameters."""
    runner = CliRunner()
    host = "127.0.0.1"
    port = 8888
    result = runner.invoke(serve, ["--host", host, "--port", str(port), "--reload"])

    assert result.exit_code == 0
    assert f"Starting server on http://{host}:{port}" in result.output
    mock_uvicorn_run.assert_called_once_with(
        "didvc.server:app",
        host=host,
        port=port,
        reload=True,
        log_config=None,
        use_colors=False,
    )


@patch("uvicorn.run")
def test_serve_no_reload(mock_uvicorn_run):
    """Test `serve` with --no-reload."""
    runner = CliRunner()
    result = runner.invoke(serve, ["--no-reload"])

    assert result.exit_code == 0
    mock_uvicorn_run.assert_called_once_with(
        "didvc.server:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_config=None,
        use_colors=False,
    )
