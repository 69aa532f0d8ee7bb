"""Script deny-list matching."""

from __future__ import annotations

import pytest

from wayback_pinner.policy.scripts import ScriptPolicy


@pytest.mark.parametrize("uris", ["", "|", "||"])
def test_empty_list_allows_scripts(uris):
    assert not ScriptPolicy(uris).disable_js("https://en.wikipedia.org/wiki/IPFS")


def test_matches_host_fragment():
    policy = ScriptPolicy("wikipedia.org|eff.org/tags")
    assert policy.disable_js("https://en.wikipedia.org/wiki/IPFS")
    assert policy.disable_js("https://www.eff.org/tags/privacy")
    assert not policy.disable_js("https://www.eff.org/about")
    assert not policy.disable_js("https://example.com/")


def test_fragments_are_literal():
    policy = ScriptPolicy("a.c")
    assert policy.disable_js("https://a.c/")
    # "." is not a wildcard
    assert not policy.disable_js("https://abc/")


def test_case_sensitive():
    assert not ScriptPolicy("Wikipedia.org").disable_js("https://en.wikipedia.org/")


def test_fragments_ignore_empty_entries():
    assert ScriptPolicy("|example.com|").fragments == ["example.com"]
