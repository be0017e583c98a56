from click.testing import CliRunner

from didvc.commands.keys import keys


def test_keys_init_creates_pair(tmp_path):
    """Test `keys init` on an empty directory."""
    key_dir = tmp_path / "keys"
    runner = CliRunner()

    result = runner.invoke(keys, ["init", "--key-dir", str(key_dir)])

    assert result.exit_code == 0
    assert "Key pair ready in" in result.output
    assert (key_dir / "private.pem").exists()
    assert (key_dir / "public.pem").exists()


def test_keys_init_reuses_existing_pair(key_dir):
    """Test `keys init` leaves an existing pair untouched."""
    before = (key_dir / "public.pem").read_text()
    runner = CliRunner()

    result = runner.invoke(keys, ["init", "--key-dir", str(key_dir)])

    assert result.exit_code == 0
    assert (key_dir / "public.pem").read_text() == before


def test_keys_init_warns_when_unwritable(tmp_path):
    """Test `keys init` when the key directory cannot be created."""
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    runner = CliRunner()

    result = runner.invoke(keys, ["init", "--key-dir", str(blocker / "keys")])

    assert result.exit_code == 0
    assert "was not saved" in result.output


def test_keys_show_prints_public_key(key_dir):
    """Test `keys show` with an existing pair."""
    runner = CliRunner()

    result = runner.invoke(keys, ["show", "--key-dir", str(key_dir)])

    assert result.exit_code == 0
    assert result.output == (key_dir / "public.pem").read_text()


def test_keys_show_without_keys(tmp_path):
    """Test `keys show` does not generate keys."""
    runner = CliRunner()

    result = runner.invoke(keys, ["show", "--key-dir", str(tmp_path / "empty")])

    assert result.exit_code == 0
    assert "No key pair found" in result.output
    assert not (tmp_path / "empty").exists()
