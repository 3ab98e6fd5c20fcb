import unittest

CLAUDE_PROMPT = """
 Edit file src/app.py

 Do you want to make this edit to app.py?
 ❯ 1. Yes
   2. Yes, allow all edits during this session (shift+tab)
   3. No, and tell Claude what to do differently (esc)

 Esc to cancel
"""


class TestParsePrompt(unittest.TestCase):
    def test_footer_prompt_with_selection(self) -> None:
        from agent_doc.kernel.prompt_detect import parse_prompt

        info = parse_prompt(CLAUDE_PROMPT)
        self.assertTrue(info.active)
        self.assertEqual(info.question, "Do you want to make this edit to app.py?")
        self.assertEqual([o.index for o in info.options], [1, 2, 3])
        self.assertEqual(info.options[2].label, "No, and tell Claude what to do differently (esc)")
        self.assertEqual(info.selected, 1)

    def test_inline_prompt(self) -> None:
        from agent_doc.kernel.prompt_detect import parse_prompt

        info = parse_prompt("some output\nProceed? 1) Yes 2) No\n")
        self.assertTrue(info.active)
        self.assertEqual(info.question, "Proceed?")
        self.assertEqual([(o.index, o.label) for o in info.options], [(1, "Yes"), (2, "No")])
        self.assertIsNone(info.selected)

    def test_paren_and_bracket_markers(self) -> None:
        from agent_doc.kernel.prompt_detect import parse_prompt

        info = parse_prompt("Pick one\n[1] red\n[2] green\n")
        self.assertEqual([o.label for o in info.options], ["red", "green"])
        info = parse_prompt("Pick one\n1) red\n2) green\n> 3) blue\n")
        self.assertEqual(info.selected, 3)

    def test_ansi_and_box_borders_are_stripped(self) -> None:
        from agent_doc.kernel.prompt_detect import parse_prompt

        raw = (
            "\x1b[1m│ Run this command?\x1b[0m │\n"
            "│ \x1b[36m❯ 1. Yes\x1b[0m │\n"
            "│   2. No │\n"
            "Esc to cancel\n"
        )
        info = parse_prompt(raw)
        self.assertTrue(info.active)
        self.assertEqual(info.question, "Run this command?")
        self.assertEqual([o.label for o in info.options], ["Yes", "No"])

    def test_bottom_most_block_wins(self) -> None:
        from agent_doc.kernel.prompt_detect import parse_prompt

        raw = "Old question?\n1. a\n2. b\n\nNew question?\n1. c\n2. d\n"
        info = parse_prompt(raw)
        self.assertEqual(info.question, "New question?")
        self.assertEqual([o.label for o in info.options], ["c", "d"])

    def test_not_a_prompt(self) -> None:
        from agent_doc.kernel.prompt_detect import parse_prompt

        cases = [
            "",
            "hello world\n",
            "Question?\n1. only one option\n",
            "Question?\n1. a\n3. b\n",
            "1. a\n2. b\n",
            "Steps:\n1. build\n2. test\nDone.\nCompiling...\nFinished in 2s\n",
        ]
        for raw in cases:
            with self.subTest(raw=raw):
                self.assertFalse(parse_prompt(raw).active)

    def test_inactive_json_shape(self) -> None:
        from agent_doc.kernel.prompt_detect import parse_prompt

        self.assertEqual(parse_prompt("nothing").to_json_dict(), {"active": False})
        d = parse_prompt("Proceed? 1) Yes 2) No").to_json_dict()
        self.assertEqual(d, {"active": True, "question": "Proceed?", "options": [{"index": 1, "label": "Yes"}, {"index": 2, "label": "No"}]})

    def test_parse_option_line(self) -> None:
        from agent_doc.kernel.prompt_detect import parse_option_line

        item = parse_option_line("  ❯ 2. Yes, and don't ask again")
        assert item is not None
        opt, selected = item
        self.assertEqual((opt.index, opt.label, selected), (2, "Yes, and don't ask again", True))
        self.assertIsNone(parse_option_line("2024. was a year"))
        self.assertIsNone(parse_option_line("3."))


if __name__ == "__main__":
    unittest.main()
