"""Tests for GitHub pull request helper functions."""

from unittest.mock import MagicMock

from civet_core.gh.pull_request import close_pull, get_pull, list_bot_comments, resolve_bot_login


def _comment(login):
    c = MagicMock()
    if login is None:
        c.user = None
    else:
        c.user.login = login
    return c


class TestListBotComments:
    def test_returns_only_bot_comments(self):
        issue = MagicMock()
        mine, theirs = _comment("civet-bot"), _comment("alice")
        issue.get_comments.return_value = [theirs, mine]
        assert list_bot_comments(issue, "civet-bot") == [mine]

    def test_skips_comments_from_deleted_users(self):
        issue = MagicMock()
        ghost = _comment(None)
        issue.get_comments.return_value = [ghost]
        assert list_bot_comments(issue, "civet-bot") == []

    def test_login_match_is_exact(self):
        issue = MagicMock()
        issue.get_comments.return_value = [_comment("civet-bot2"), _comment("Civet-Bot")]
        assert list_bot_comments(issue, "civet-bot") == []


def test_close_pull_sends_title_and_body_unchanged():
    pull = MagicMock()
    close_pull(pull, "Add sprockets", "")
    pull.edit.assert_called_once_with(title="Add sprockets", body="", state="closed")


def test_get_pull():
    repo = MagicMock()
    assert get_pull(repo, 12) is repo.get_pull.return_value
    repo.get_pull.assert_called_once_with(12)


def test_resolve_bot_login():
    client = MagicMock()
    client.get_user.return_value.login = "civet-bot"
    assert resolve_bot_login(client) == "civet-bot"
