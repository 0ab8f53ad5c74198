"""
Tests for gitignore-style path filtering.
"""

from kgindex.parser.ignore_rules import (
    DEFAULT_EXCLUDE_PATTERNS,
    IgnoreRule,
    IgnoreRules,
    load_ignore_patterns,
)


class TestIgnoreRule:
    def test_blank_and_comment_lines(self):
        assert IgnoreRule.parse("") is None
        assert IgnoreRule.parse("   ") is None
        assert IgnoreRule.parse("# comment") is None

    def test_star_stays_within_segment(self):
        rule = IgnoreRule.parse("src/*.js")
        assert rule.matches("src/app.js", is_dir=False)
        assert not rule.matches("src/nested/app.js", is_dir=False)

    def test_double_star_crosses_segments(self):
        rule = IgnoreRule.parse("src/**/*.js")
        assert rule.matches("src/app.js", is_dir=False)
        assert rule.matches("src/a/b/app.js", is_dir=False)

    def test_unanchored_pattern_matches_at_any_depth(self):
        rule = IgnoreRule.parse("*.log")
        assert rule.matches("debug.log", is_dir=False)
        assert rule.matches("logs/2024/debug.log", is_dir=False)

    def test_anchored_pattern_matches_only_at_root(self):
        rule = IgnoreRule.parse("/build")
        assert rule.matches("build", is_dir=True)
        assert not rule.matches("pkg/build", is_dir=True)

    def test_directory_only_pattern(self):
        rule = IgnoreRule.parse("target/")
        assert rule.directory_only
        assert rule.matches("target", is_dir=True)
        assert not rule.matches("target", is_dir=False)
        assert rule.matches("target/classes/App.class", is_dir=False)

    def test_question_mark(self):
        rule = IgnoreRule.parse("file?.txt")
        assert rule.matches("file1.txt", is_dir=False)
        assert not rule.matches("file10.txt", is_dir=False)


class TestIgnoreRules:
    def test_defaults_when_no_patterns(self):
        rules = IgnoreRules([])
        assert rules.using_defaults
        assert len(rules.rules) == len(DEFAULT_EXCLUDE_PATTERNS)
        assert rules.is_ignored("node_modules", is_dir=True)
        assert rules.is_ignored("pkg/node_modules/lib/index.js")
        assert rules.is_ignored("app.log")
        assert rules.is_ignored("__pycache__", is_dir=True)
        assert rules.is_ignored(".env")
        assert not rules.is_ignored("src/app.js")

    def test_project_patterns_replace_defaults(self):
        rules = IgnoreRules(["*.secret"])
        assert not rules.using_defaults
        assert rules.is_ignored("keys/api.secret")
        assert not rules.is_ignored("node_modules", is_dir=True)

    def test_git_directory_always_excluded(self):
        rules = IgnoreRules(["*.secret"])
        assert rules.is_ignored(".git", is_dir=True)
        assert rules.is_ignored(".git/config")

    def test_negation_last_match_wins(self):
        rules = IgnoreRules(["*.log", "!keep.log"])
        assert rules.is_ignored("debug.log")
        assert not rules.is_ignored("keep.log")

        reordered = IgnoreRules(["!keep.log", "*.log"])
        assert reordered.is_ignored("keep.log")

    def test_root_path_is_never_ignored(self):
        assert not IgnoreRules([]).is_ignored(".", is_dir=True)

    def test_from_directory_reads_ignore_file(self, tmp_path):
        (tmp_path / ".gitignore").write_text("# generated\n\ncoverage/\n*.bak\n")
        rules = IgnoreRules.from_directory(tmp_path)
        assert rules.patterns == ["coverage/", "*.bak"]
        assert rules.is_ignored("coverage", is_dir=True)
        assert rules.is_ignored("old.bak")

    def test_from_directory_without_ignore_file(self, tmp_path):
        rules = IgnoreRules.from_directory(tmp_path)
        assert rules.using_defaults

    def test_missing_ignore_file_gives_no_patterns(self, tmp_path):
        assert load_ignore_patterns(tmp_path / ".gitignore") == []
