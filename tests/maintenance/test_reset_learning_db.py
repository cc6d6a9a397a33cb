from unittest.mock import patch

from scripts.maintenance import reset_learning_db


def test_reset_requires_confirmation(monkeypatch, capsys):
    monkeypatch.setattr("builtins.input", lambda _prompt: "no")
    with patch.object(reset_learning_db.database, "reset_db") as reset_db:
        reset_learning_db.main()

    reset_db.assert_not_called()
    assert "Cancelled" in capsys.readouterr().out


def test_reset_on_yes(monkeypatch, capsys):
    monkeypatch.setattr("builtins.input", lambda _prompt: "YES")
    with patch.object(reset_learning_db.database, "reset_db") as reset_db:
        reset_learning_db.main()

    reset_db.assert_called_once_with()
    assert "reset complete" in capsys.readouterr().out
