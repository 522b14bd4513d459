"""Tests for git cookie file discovery and parsing."""

import subprocess
from unittest.mock import MagicMock

from gitsync_core.gerrit.auth import find_cookie_file, load_git_cookies, parse_cookie_file

COOKIE_LINE = "review.example.com\tFALSE\t/\tTRUE\t2147483647\to\tgit-bot.example.com=1//abc"


class TestParseCookieFile:
    def test_single_cookie(self):
        jar = parse_cookie_file(COOKIE_LINE + "\n")
        assert jar.get("o", domain="review.example.com") == "git-bot.example.com=1//abc"

    def test_http_only_prefix_is_a_cookie(self):
        jar = parse_cookie_file("#HttpOnly_" + COOKIE_LINE)
        assert jar.get("o") == "git-bot.example.com=1//abc"

    def test_comments_and_blank_lines_skipped(self):
        jar = parse_cookie_file("# Netscape HTTP Cookie File\n\n" + COOKIE_LINE)
        assert len(jar) == 1

    def test_malformed_lines_skipped(self):
        jar = parse_cookie_file("review.example.com\tFALSE\t/\n" + COOKIE_LINE)
        assert len(jar) == 1

    def test_secure_flag(self):
        jar = parse_cookie_file(COOKIE_LINE)
        assert next(iter(jar)).secure


class TestFindCookieFile:
    def test_git_config_path_preferred(self, mocker, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        cookie_file = tmp_path / "cookies"
        cookie_file.write_text(COOKIE_LINE)
        mocker.patch("subprocess.run", return_value=MagicMock(returncode=0, stdout=f"{cookie_file}\n"))

        assert find_cookie_file() == cookie_file

    def test_falls_back_to_home_gitcookies(self, mocker, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        (tmp_path / ".gitcookies").write_text(COOKIE_LINE)
        mocker.patch("subprocess.run", return_value=MagicMock(returncode=1, stdout=""))

        assert find_cookie_file() == tmp_path / ".gitcookies"

    def test_git_missing(self, mocker, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        mocker.patch("subprocess.run", side_effect=FileNotFoundError)

        assert find_cookie_file() is None

    def test_git_timeout(self, mocker, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        mocker.patch("subprocess.run", side_effect=subprocess.TimeoutExpired(cmd="git", timeout=5))

        assert find_cookie_file() is None


def test_load_git_cookies_none_without_file(mocker):
    mocker.patch("gitsync_core.gerrit.auth.find_cookie_file", return_value=None)
    assert load_git_cookies() is None


def test_load_git_cookies_reads_file(mocker, tmp_path):
    path = tmp_path / ".gitcookies"
    path.write_text(COOKIE_LINE)
    mocker.patch("gitsync_core.gerrit.auth.find_cookie_file", return_value=path)
    assert len(load_git_cookies()) == 1
