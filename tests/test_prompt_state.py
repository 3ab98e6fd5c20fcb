import unittest


def _entry(file: str, question: str, active: bool = True):
    from agent_doc.contracts.v1 import PromptAllEntry, PromptInfo, PromptOption

    if not active:
        return PromptAllEntry(session_id="s-" + file, file=file)
    info = PromptInfo(
        active=True,
        question=question,
        options=[PromptOption(index=1, label="Yes"), PromptOption(index=2, label="No")],
    )
    return PromptAllEntry(session_id="s-" + file, file=file, info=info)


class TestPromptDisplayState(unittest.TestCase):
    def test_idle_until_a_prompt_appears(self) -> None:
        from agent_doc.sync.prompt_state import DISPLAYING, IDLE, PromptDisplayState

        st = PromptDisplayState()
        up = st.update([_entry("a.md", "", active=False)])
        self.assertIsNone(up.show)
        self.assertFalse(up.dismiss)
        self.assertEqual(st.phase, IDLE)

        up = st.update([_entry("a.md", "Proceed?")])
        assert up.show is not None
        self.assertEqual(up.show.key, "a.md:Proceed?")
        self.assertEqual(up.total, 1)
        self.assertEqual(st.phase, DISPLAYING)

    def test_displayed_prompt_does_not_flicker(self) -> None:
        from agent_doc.sync.prompt_state import PromptDisplayState

        st = PromptDisplayState()
        st.update([_entry("a.md", "First?")])
        for _ in range(5):
            up = st.update([_entry("b.md", "Second?"), _entry("a.md", "First?")])
            self.assertIsNone(up.show)
            self.assertFalse(up.dismiss)
            self.assertEqual(up.total, 2)
            self.assertEqual(st.current_key, "a.md:First?")
        self.assertEqual(st.queue, ["a.md:First?", "b.md:Second?"])

    def test_queue_is_fifo(self) -> None:
        from agent_doc.sync.prompt_state import PromptDisplayState

        st = PromptDisplayState()
        st.update([_entry("a.md", "A?")])
        st.update([_entry("c.md", "C?"), _entry("a.md", "A?")])
        st.update([_entry("b.md", "B?"), _entry("c.md", "C?"), _entry("a.md", "A?")])

        up = st.update([_entry("b.md", "B?"), _entry("c.md", "C?")])
        assert up.show is not None
        self.assertEqual(up.show.key, "c.md:C?")
        up = st.update([_entry("b.md", "B?")])
        assert up.show is not None
        self.assertEqual(up.show.key, "b.md:B?")

    def test_dismiss_when_everything_resolves(self) -> None:
        from agent_doc.sync.prompt_state import IDLE, PromptDisplayState

        st = PromptDisplayState()
        st.update([_entry("a.md", "A?")])
        up = st.update([])
        self.assertTrue(up.dismiss)
        self.assertEqual(st.phase, IDLE)
        self.assertFalse(st.update([]).dismiss)

    def test_answered_prompt_waits_for_grace(self) -> None:
        from agent_doc.sync.prompt_state import IDLE, SUPPRESSED_ANSWERED, PromptDisplayState

        st = PromptDisplayState()
        st.update([_entry("a.md", "A?")])
        self.assertEqual(st.mark_answered(), "a.md:A?")
        self.assertEqual(st.phase, SUPPRESSED_ANSWERED)

        for _ in range(3):
            up = st.update([_entry("a.md", "A?")])
            self.assertIsNone(up.show)
            self.assertEqual(up.total, 0)
        self.assertEqual(st.phase, SUPPRESSED_ANSWERED)

        st.update([])
        self.assertEqual(st.phase, IDLE)
        up = st.update([_entry("a.md", "A?")])
        assert up.show is not None
        self.assertEqual(up.show.key, "a.md:A?")

    def test_answered_prompt_lets_next_one_through(self) -> None:
        from agent_doc.sync.prompt_state import PromptDisplayState

        st = PromptDisplayState()
        st.update([_entry("a.md", "A?"), _entry("b.md", "B?")])
        st.mark_answered()
        up = st.update([_entry("a.md", "A?"), _entry("b.md", "B?")])
        assert up.show is not None
        self.assertEqual(up.show.key, "b.md:B?")
        self.assertEqual(up.total, 1)

    def test_mark_answered_without_display(self) -> None:
        from agent_doc.sync.prompt_state import PromptDisplayState

        self.assertIsNone(PromptDisplayState().mark_answered())
        self.assertIsNone(PromptDisplayState().take_current())

    def test_take_current_returns_the_answered_entry(self) -> None:
        from agent_doc.sync.prompt_state import SUPPRESSED_ANSWERED, PromptDisplayState

        st = PromptDisplayState()
        st.update([_entry("a.md", "A?")])
        entry = st.take_current()
        assert entry is not None
        self.assertEqual(entry.file, "a.md")
        self.assertEqual(st.answered_key, "a.md:A?")
        self.assertEqual(st.phase, SUPPRESSED_ANSWERED)
        self.assertIsNone(st.update([_entry("a.md", "A?")]).show)

    def test_withdraw_shows_again_on_next_update(self) -> None:
        from agent_doc.sync.prompt_state import PromptDisplayState

        st = PromptDisplayState()
        st.update([_entry("a.md", "A?"), _entry("b.md", "B?")])
        st.withdraw()
        self.assertEqual(st.queue, ["a.md:A?", "b.md:B?"])
        up = st.update([_entry("a.md", "A?"), _entry("b.md", "B?")])
        assert up.show is not None
        self.assertEqual(up.show.key, "a.md:A?")


if __name__ == "__main__":
    unittest.main()
