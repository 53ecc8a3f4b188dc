"""
Tests for the per-file linter and corpus-wide reference resolution.

Scripts are linted with :class:`ScriptFileLinter` against a shared
:class:`LintIndex`, then resolved with :class:`ReferenceResolver`, the same
sequence :class:`ScpAnalysis` runs over a directory.
"""
from __future__ import annotations

import textwrap

import pytest

from scp_lint import LintIndex, ReferenceResolver, ScriptFileLinter
from scp_lint.models import ISSUE_CATEGORIES
from scp_lint.pipeline.keywords import TRACKED_DEF_TYPES
from scp_lint.pipeline.script_lint import is_text_keyword


def _lint(*lines: str, name: str = "test.scp"):
    index = LintIndex()
    issues = ScriptFileLinter().lint_text("\n".join(lines) + "\n", name, index)
    return issues + ReferenceResolver().resolve(index)


def _lint_files(*sources):
    """Lint ``(name, source)`` pairs in order against one index."""
    index = LintIndex()
    linter = ScriptFileLinter()
    issues = []
    for name, source in sources:
        issues.extend(linter.lint_text(source, name, index))
    return issues + ReferenceResolver().resolve(index)


def _messages(issues):
    return [issue.message for issue in issues]


def _has(issues, needle: str) -> bool:
    return any(needle in issue.message for issue in issues)


# ─────────────────────────────────────────────────────────────────────────────
# Structure: [EOF], blocks, keywords
# ─────────────────────────────────────────────────────────────────────────────


class TestStructure:
    def test_clean_file(self):
        issues = _lint(
            "[ITEMDEF i_ok]",
            "ON=@Create",
            "FOR 1 3",
            "ENDFOR",
            "[EOF]",
        )
        assert issues == []

    def test_missing_eof(self):
        issues = _lint("[ITEMDEF i_test]", "ON=@Create", "SRC.NEWITEM i_test", "RETURN 1")
        assert _messages(issues) == ["CRITICAL: missing [EOF] at end of file."]
        assert issues[0].line == 4
        assert issues[0].category == "CRITICAL"

    def test_empty_file(self):
        index = LintIndex()
        issues = ScriptFileLinter().lint_text("", "empty.scp", index)
        assert [(i.line, i.message) for i in issues] == [
            (1, "CRITICAL: missing [EOF] at end of file.")
        ]

    def test_eof_case_insensitive_with_trailing_blank_lines(self):
        assert _lint("[ITEMDEF i_a]", "[eof]", "", "// done") == []

    def test_text_after_eof(self):
        issues = _lint("[ITEMDEF i_test]", "[EOF] trailing")
        assert _has(issues, "CRITICAL: text found after [EOF].")

    def test_assignment_after_eof(self):
        issues = _lint("[ITEMDEF i_test]", "[EOF] X=1")
        assert (2, "CRITICAL: text found after [EOF].") in [
            (i.line, i.message) for i in issues
        ]

    def test_missing_loop_arguments(self):
        issues = _lint(
            "[ITEMDEF i_test]",
            "ON=@Create",
            "FOR",
            "ENDFOR",
            "WHILE",
            "ENDWHILE",
            "DORAND",
            "ENDDO",
            "DOSWITCH",
            "ENDDO",
            "FOROBJS",
            "ENDFOR",
            "[EOF]",
        )
        assert _messages(issues) == [
            "LOGIC: FOR missing expression (expected: FOR <expr>, "
            "FOR <start> <end>, or FOR <var> <start> <end>).",
            "LOGIC: WHILE missing condition.",
            "LOGIC: DORAND missing line count.",
            "LOGIC: DOSWITCH missing line number.",
            "LOGIC: FOROBJS missing argument.",
        ]
        assert [i.line for i in issues] == [3, 5, 7, 9, 11]

    def test_empty_if(self):
        issues = _lint("[FUNCTION f_x]", "IF", "ENDIF", "[EOF]")
        assert _messages(issues) == ["LOGIC: empty 'IF' statement."]

    def test_typos(self):
        issues = _lint("[FUNCTION f_x]", "DORAN 3", "EN", "[EOF]")
        assert _has(issues, "TYPO: 'DORAN' found. Did you mean 'DORAND'?")
        assert _has(issues, "TYPO: 'EN' found.")

    def test_unclosed_block_at_eof_reported_at_opener(self):
        issues = _lint("[ITEMDEF i_x]", "IF 1", "SAY hi", "SAY there", "[EOF]")
        assert [(i.line, i.message) for i in issues] == [
            (2, "BLOCK: unclosed 'IF' block.")
        ]

    def test_trigger_flushes_blocks(self):
        issues = _lint(
            "[ITEMDEF i_test]",
            "ON=@Create",
            "IF <SRC.NPC>",
            "ON=@DropOn Char",
            "[EOF]",
        )
        assert [(i.line, i.message) for i in issues] == [
            (3, "BLOCK: unclosed 'IF' block before new trigger.")
        ]

    def test_section_flushes_blocks(self):
        issues = _lint("[ITEMDEF i_a]", "IF 1", "[ITEMDEF i_b]", "[EOF]")
        assert [(i.line, i.message) for i in issues] == [
            (2, "BLOCK: unclosed 'IF' block before new section.")
        ]

    def test_mismatched_closer(self):
        issues = _lint("[FUNCTION f_x]", "FOR 1 3", "ENDIF", "[EOF]")
        assert _messages(issues) == [
            "BLOCK: mismatch. 'FOR' closed by 'ENDIF' (expected ENDFOR)."
        ]

    def test_else_without_if(self):
        issues = _lint("[FUNCTION f_x]", "ELSE", "[EOF]")
        assert _messages(issues) == ["BLOCK: 'ELSE' without matching IF."]

    def test_assignment_is_not_a_block_opener(self):
        assert _lint("[ITEMDEF i_x]", "BEGIN = 1", "[EOF]") == []

    def test_if_with_comparison_still_opens_block(self):
        issues = _lint("[FUNCTION f_x]", "IF <LOCAL.A>=1", "[EOF]")
        assert _messages(issues) == ["BLOCK: unclosed 'IF' block."]

    def test_end_to_end_minimal(self):
        issues = _lint("[ITEMDEF i_test]", "IF 1")
        assert len(issues) == 2
        assert {i.category for i in issues} == {"BLOCK", "CRITICAL"}
        assert all(i.line == 2 for i in issues)

    def test_issue_file_name(self):
        issues = _lint("[ITEMDEF i_a]", name="items/a.scp")
        assert issues[0].file == "items/a.scp"
        assert str(issues[0]) == "items/a.scp:1: CRITICAL: missing [EOF] at end of file."

    def test_categories_are_known(self):
        issues = _lint("[ITEMDEF i_a]", "[ITEMDEF i_a]", "DORAN", "IF (", "SRC.NEWITEM i_x")
        assert issues
        assert {i.category for i in issues} <= ISSUE_CATEGORIES
        assert all(i.message.startswith(i.category + ":") for i in issues)

    def test_rerun_is_deterministic(self):
        lines = ("[ITEMDEF i_a]", "IF (1", "SRC.NEWITEM i_nope", "[EOF]")
        assert _lint(*lines) == _lint(*lines)


# ─────────────────────────────────────────────────────────────────────────────
# Free text
# ─────────────────────────────────────────────────────────────────────────────


class TestFreeText:
    def test_comment_section_skipped(self):
        source = textwrap.dedent("""\
            [COMMENT sphere_newb]
            If the player choose a skill, he gets the items below
            default human template: ( unbalanced [ on purpose
              IF 1 <i_missing
            [ITEMDEF i_test]
            [EOF]
        """)
        index = LintIndex()
        issues = ScriptFileLinter().lint_text(source, "newb.scp", index)
        assert issues + ReferenceResolver().resolve(index) == []

    def test_indented_header_ends_comment(self):
        source = textwrap.dedent("""\
            [COMMENT sphere_newb]
            Newbie kits by skill:
              [NEWBIE Alchemy]
              IF 1
            [ITEMDEF i_test]
            [EOF]
        """)
        issues = ScriptFileLinter().lint_text(source, "newb.scp", LintIndex())
        assert [(i.line, i.message) for i in issues] == [
            (4, "BLOCK: unclosed 'IF' block before new section.")
        ]

    def test_indented_definition_after_comment_is_indexed(self):
        issues = _lint_files(
            ("a.scp", "[COMMENT notes]\nsee below\n  [ITEMDEF i_sword]\n[EOF]\n"),
            ("b.scp", "[FUNCTION f_give]\nSRC.NEWITEM i_sword\n[EOF]\n"),
        )
        assert issues == []

    def test_indented_trigger_ends_book(self):
        issues = _lint("[BOOK b1]", "once upon a time", "  ON=@Click", "IF 1", "[EOF]")
        assert [(i.line, i.message) for i in issues] == [
            (4, "BLOCK: unclosed 'IF' block.")
        ]

    def test_book_section_skipped(self):
        assert _lint("[BOOK b_diary]", "Day 1 (i_lost my <sword", "[EOF]") == []

    def test_text_directive_skips_brackets_and_references(self):
        assert _lint(
            "[ITEMDEF i_x]",
            "SAY (hello i_nowhere",
            "SRC.SYSMESSAGE Hi <there",
            "[EOF]",
        ) == []

    def test_writefile_payload_skipped(self):
        assert _lint(
            "[FUNCTION f_log]",
            "SERV.WRITEFILE log.txt (oops i_unknown",
            "serv.writefile log.txt [also",
            "[EOF]",
        ) == []

    def test_is_text_keyword(self):
        assert is_text_keyword("SAY")
        assert is_text_keyword("src.sysmessage")
        assert is_text_keyword("NAME")
        assert not is_text_keyword("NAME=test")
        assert not is_text_keyword("SRC.NEWITEM")
        assert not is_text_keyword("")


# ─────────────────────────────────────────────────────────────────────────────
# Brackets and expressions
# ─────────────────────────────────────────────────────────────────────────────


class TestBracketChecks:
    def test_unclosed_paren(self):
        issues = _lint("[ITEMDEF i_test]", "IF (1", "ENDIF", "[EOF]")
        assert _messages(issues) == ["SYNTAX: brackets -> unclosed: ("]
        assert issues[0].category == "SYNTAX"
        assert issues[0].line == 2

    def test_unclosed_angle(self):
        issues = _lint("[ITEMDEF i_test]", "IF <SRC.NPC", "ENDIF", "[EOF]")
        assert _messages(issues) == ["SYNTAX: brackets -> unclosed '<'"]

    def test_angle_comparison(self):
        assert _lint("[ITEMDEF i_test]", "IF (<MOREY> > <MOREX>)", "ENDIF", "[EOF]") == []

    @pytest.mark.parametrize(
        "line",
        [
            "SRC.ACT.MOREY=<EVAL ((<SRC.KILLS> >= 3) || (<SRC.KARMA> < -1000) "
            "|| (<SRC.FLAGS>&002000000))>",
            "LOCAL.TEST=<EVAL (<MORE>)>/8",
            "LOCAL.TEST2=<EVAL (<MORE>)</8",
            "VAR.TEST=<EVAL (<MOREY> > <MOREX>)>",
            "VAR.TEST=<EVAL (<MOREY> <= <MOREX>)>",
        ],
    )
    def test_eval_expressions(self, line):
        assert _lint("[ITEMDEF i_test]", line, "[EOF]") == []

    def test_deeply_nested_angle_is_reported(self):
        issues = _lint("[FUNCTION f_x]", "LOCAL.X=" + "<a" * 800, "[EOF]")
        assert _messages(issues) == ["SYNTAX: brackets -> unclosed '<'"]

    def test_dynamic_function_name(self):
        assert _lint(
            "[FUNCTION f_test]",
            "SERV.LOG <DEF.F_MULTIS_<SRC.CTAG0.ACCOUNTLANG>_MULTI_CENTER>",
            "[EOF]",
        ) == []


# ─────────────────────────────────────────────────────────────────────────────
# Duplicate definitions
# ─────────────────────────────────────────────────────────────────────────────


class TestDuplicates:
    @pytest.mark.parametrize("def_type", sorted(TRACKED_DEF_TYPES))
    def test_duplicate_across_files(self, def_type):
        source = f"[{def_type} dup]\n[EOF]\n"
        issues = _lint_files(("dup_a.scp", source), ("dup_b.scp", source))
        assert [(i.file, i.line, i.message) for i in issues] == [
            ("dup_b.scp", 1, f"DUPLICATE: '{def_type} DUP' already defined at dup_a.scp:1.")
        ]

    def test_duplicate_case_insensitive(self):
        issues = _lint("[ITEMDEF i_sword]", "[itemdef I_SWORD]", "[EOF]")
        assert _messages(issues) == [
            "DUPLICATE: 'ITEMDEF I_SWORD' already defined at test.scp:1."
        ]

    def test_same_id_different_types(self):
        assert _lint("[ITEMDEF shared]", "[TEMPLATE shared]", "[EOF]") == []

    def test_untracked_types_not_checked(self):
        assert _lint("[DEFNAME names]", "[DEFNAME names]", "[EOF]") == []

    def test_dialog_subsections(self):
        issues = _lint(
            "[DIALOG d_test]",
            "[DIALOG d_test TEXT]",
            "[DIALOG d_test BUTTON]",
            "[DIALOG d_test TEXT]",
            "[EOF]",
            name="dialogs.scp",
        )
        assert _messages(issues) == [
            "DUPLICATE: 'DIALOG D_TEST TEXT' already defined at dialogs.scp:2."
        ]

    def test_first_location_kept(self):
        source = "[FUNCTION f_dup]\n[EOF]\n"
        issues = _lint_files(("a.scp", source), ("b.scp", source), ("c.scp", source))
        assert [i.file for i in issues] == ["b.scp", "c.scp"]
        assert all("already defined at a.scp:1." in i.message for i in issues)


# ─────────────────────────────────────────────────────────────────────────────
# References
# ─────────────────────────────────────────────────────────────────────────────


class TestReferences:
    def test_undeclared_item_in_defname_list(self):
        issues = _lint(
            "[DEFNAME items_test]",
            "random_candy { i_missing_item 1 }",
            "[EOF]",
        )
        assert _messages(issues) == [
            "UNDECLARED: 'I_MISSING_ITEM' not defined as ITEMDEF or DEFNAME."
        ]
        assert issues[0].line == 2

    def test_undeclared_spawn(self):
        issues = _lint(
            "[DEFNAME spawns_test]",
            "random_spawn { spawn_missing_group 1 }",
            "[EOF]",
        )
        assert _messages(issues) == [
            "UNDECLARED: 'SPAWN_MISSING_GROUP' not defined as SPAWN or DEFNAME."
        ]

    def test_region_reference_lists_both_types(self):
        issues = _lint("[FUNCTION f_go]", "SRC.GO r_nowhere", "[EOF]")
        assert _messages(issues) == [
            "UNDECLARED: 'R_NOWHERE' not defined as REGIONTYPE/AREADEF or DEFNAME."
        ]

    @pytest.mark.parametrize(
        "lines",
        [
            pytest.param(
                ("[SPAWN c_08301]", "[DEFNAME spawns_test]",
                 "random_spawn { c_08301 1 }", "[EOF]"),
                id="any-tracked-header-id",
            ),
            pytest.param(
                ("[MULTIDEF 01431]", "DEFNAME=m_foundation_12x16",
                 "[DEFNAME menus_test]", "random_menu { m_foundation_12x16 1 }", "[EOF]"),
                id="defname-inside-multidef",
            ),
            pytest.param(
                ("[ITEMDEF 03709]", "DEFNAME=i_fire_column",
                 "[DEFNAME items_test]", "random_fx { i_fire_column 1 }", "[EOF]"),
                id="itemdef-defname",
            ),
            pytest.param(
                ("[RESDEFNAME backward_compatibility_defs]",
                 "i_dragon_egg_lamp_s i_lamp_dragon_s",
                 "[DEFNAME items_test]", "random_lamps { i_dragon_egg_lamp_s 1 }", "[EOF]"),
                id="resdefname-alias",
            ),
            pytest.param(
                ("[RES_RESDEFNAME compat]",
                 "i_old_name=i_new_name",
                 "[DEFNAME items_test]", "random_old { i_old_name 1 }", "[EOF]"),
                id="res-resdefname-alias",
            ),
            pytest.param(
                ("[FUNCTION f_test]", "RETURN 1", "[REGIONTYPE r_test]", "NAME=test",
                 "[DEFNAME items_test]", "random_refs { f_test 1 r_test 1 }", "[EOF]"),
                id="function-and-region-prefixes",
            ),
        ],
    )
    def test_resolved_references(self, lines):
        assert _lint(*lines) == []

    def test_alias_table_values_not_checked(self):
        assert _lint("[RESDEFNAME compat]", "i_a i_b c_c", "[EOF]") == []

    def test_reference_before_definition_across_files(self):
        issues = _lint_files(
            ("a.scp", "[FUNCTION f_give]\nSRC.NEWITEM i_later\n[EOF]\n"),
            ("b.scp", "[ITEMDEF i_later]\n[EOF]\n"),
        )
        assert issues == []

    def test_reference_without_definition_across_files(self):
        issues = _lint_files(
            ("a.scp", "[FUNCTION f_give]\nSRC.NEWITEM i_later\n[EOF]\n"),
        )
        assert [(i.file, i.line, i.category) for i in issues] == [
            ("a.scp", 2, "UNDECLARED")
        ]

    def test_same_line_reported_once(self):
        issues = _lint("[FUNCTION f_x]", "SRC.NEWITEM i_nope, i_nope", "[EOF]")
        assert len(issues) == 1

    def test_each_line_reported(self):
        issues = _lint(
            "[FUNCTION f_x]", "SRC.NEWITEM i_nope", "SRC.NEWITEM i_nope", "[EOF]"
        )
        assert [i.line for i in issues] == [2, 3]


# ─────────────────────────────────────────────────────────────────────────────
# Templates
# ─────────────────────────────────────────────────────────────────────────────


class TestTemplates:
    def test_valid_template(self):
        assert _lint(
            "[TEMPLATE loot_pack]",
            "CONTAINER=i_backpack",
            "ITEM=random_food",
            "ITEM=i_gold,{1 3}",
            "[TEMPLATE random_food]",
            "ITEM=i_apple",
            "[ITEMDEF i_backpack]",
            "[ITEMDEF i_gold]",
            "[ITEMDEF i_apple]",
            "[EOF]",
        ) == []

    def test_range_with_padding(self):
        issues = _lint("[TEMPLATE t_range]", "ITEM={ 1 3 }", "[EOF]")
        assert _has(issues, "SYNTAX: template range selector")

    def test_range_with_three_numbers(self):
        issues = _lint("[TEMPLATE t_range]", "ITEM={1 2 3}", "[EOF]")
        assert _has(issues, "must hold exactly two numbers")

    def test_bad_chance_selector(self):
        issues = _lint(
            "[TEMPLATE loot]", "ITEM=i_sword_long,R1A", "[ITEMDEF i_sword_long]", "[EOF]"
        )
        assert _messages(issues) == [
            "SYNTAX: template R selector 'R1A' must be R followed by digits (e.g. R5)."
        ]

    def test_empty_values(self):
        issues = _lint("[TEMPLATE loot]", "ITEM=", "CONTAINER=", "[EOF]")
        assert _messages(issues) == [
            "LOGIC: ITEM missing value.",
            "LOGIC: CONTAINER missing value.",
        ]

    def test_undefined_item(self):
        issues = _lint("[TEMPLATE loot]", "ITEM=random_missing", "[EOF]")
        assert _messages(issues) == [
            "UNDECLARED: 'RANDOM_MISSING' not defined as ITEMDEF/TEMPLATE or DEFNAME."
        ]

    def test_undefined_container_reported_once(self):
        issues = _lint("[TEMPLATE loot]", "CONTAINER=i_missing", "[EOF]")
        assert _messages(issues) == [
            "UNDECLARED: 'I_MISSING' not defined as ITEMDEF or DEFNAME."
        ]

    def test_unbalanced_braces(self):
        issues = _lint(
            "[TEMPLATE loot]", "ITEM={ random_food 1 0 3", "[TEMPLATE random_food]", "[EOF]"
        )
        assert _has(issues, "SYNTAX: brackets -> unclosed: {")


# ─────────────────────────────────────────────────────────────────────────────
# Files on disk
# ─────────────────────────────────────────────────────────────────────────────


class TestLintFile:
    def test_reads_file(self, tmp_path):
        path = tmp_path / "items.scp"
        path.write_text("[ITEMDEF i_a]\nIF 1\n[EOF]\n", encoding="utf-8")
        issues = ScriptFileLinter().lint_file(path, LintIndex(), display_name="items.scp")
        assert [(i.file, i.line, i.category) for i in issues] == [
            ("items.scp", 2, "BLOCK")
        ]

    def test_default_display_name(self, tmp_path):
        path = tmp_path / "items.scp"
        path.write_text("[ITEMDEF i_a]\n", encoding="utf-8")
        issues = ScriptFileLinter().lint_file(path, LintIndex())
        assert issues[0].file == str(path)

    def test_invalid_utf8_tolerated(self, tmp_path):
        path = tmp_path / "latin.scp"
        path.write_bytes(b"[ITEMDEF i_a]\nSAY caf\xe9\n[EOF]\n")
        assert ScriptFileLinter().lint_file(path, LintIndex()) == []

    def test_crlf_line_endings(self, tmp_path):
        path = tmp_path / "dos.scp"
        path.write_bytes(b"[ITEMDEF i_a]\r\nIF 1\r\nENDIF\r\n[EOF]\r\n")
        assert ScriptFileLinter().lint_file(path, LintIndex()) == []

    def test_unreadable_file(self, tmp_path):
        issues = ScriptFileLinter().lint_file(tmp_path / "missing.scp", LintIndex())
        assert len(issues) == 1
        assert issues[0].category == "CRITICAL"
        assert issues[0].line == 1
        assert issues[0].message.startswith("CRITICAL: cannot read file: ")
