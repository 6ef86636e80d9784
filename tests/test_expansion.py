import asyncio

from lexnav.citations.expansion import ExcerptExpander, is_full_eid, section_matches_excerpt
from lexnav.citations.models import ChatSource, ExpandedSource, ExpansionStatus, SectionResponse
from lexnav.citations.navigation import CitationNavigator
from lexnav.core.exceptions import RecoverableFetchFailure


class FakeSectionClient:
    def __init__(self, section=None, expanded=None, section_error=False, expand_error=False, delay=0.0):
        self.section = section
        self.expanded = expanded or ExpandedSource()
        self.section_error = section_error
        self.expand_error = expand_error
        self.delay = delay
        self.gates: dict[str, asyncio.Event] = {}
        self.section_calls = []
        self.expand_calls = []

    async def _wait(self, *keys):
        if self.delay:
            await asyncio.sleep(self.delay)
        gate = next((self.gates[key] for key in keys if key in self.gates), None)
        if gate is not None:
            await gate.wait()

    async def get_section(self, document_id, element_id):
        self.section_calls.append((document_id, element_id))
        await self._wait(document_id)
        if self.section_error or self.section is None:
            raise RecoverableFetchFailure("section unavailable")
        return self.section

    async def expand_source(self, document_id, excerpt, section=None, chunk_id=None):
        self.expand_calls.append((document_id, excerpt, section, chunk_id))
        await self._wait(document_id, excerpt)
        if self.expand_error:
            raise RecoverableFetchFailure("expand unavailable")
        return self.expanded


EXCERPT = "The Minister may by statutory instrument exclude categories of employees."
FULL_TEXT = "(2) The Minister may by statutory   instrument exclude categories of employees from this Act."


def _source(document_id="DOC-7", section_id="sec_3__subsec_2", excerpt=EXCERPT, **kwargs):
    return ChatSource(document_id=document_id, title="Employment Act", excerpt=excerpt, section_id=section_id, **kwargs)


def test_full_eid_and_content_match():
    assert is_full_eid("sec_3")
    assert is_full_eid("chp_2__sec_9")
    assert is_full_eid("part_II")
    assert not is_full_eid("3")
    assert not is_full_eid(None)

    assert section_matches_excerpt("[Section 3] " + EXCERPT, FULL_TEXT)
    assert not section_matches_excerpt("Short one", FULL_TEXT)
    assert not section_matches_excerpt("An unrelated passage about taxation of goods.", FULL_TEXT)


def test_matching_section_is_used():
    client = FakeSectionClient(section=SectionResponse(content=FULL_TEXT, html_content="<p>..</p>", eid="sec_3__subsec_2"))
    expander = ExcerptExpander(client, timeout=1.0)

    result = asyncio.run(expander.expand(_source()))
    assert result.status is ExpansionStatus.SECTION
    assert result.content == FULL_TEXT
    assert result.html_content == "<p>..</p>"
    assert client.expand_calls == []


def test_mismatched_section_falls_back_to_expand_source():
    client = FakeSectionClient(
        section=SectionResponse(content="Something else entirely, about taxation."),
        expanded=ExpandedSource(full_excerpt=FULL_TEXT, section_id="sec_3__subsec_2"),
    )
    result = asyncio.run(ExcerptExpander(client, timeout=1.0).expand(_source(chunk_id="c-1", section="Section 3(2)")))

    assert result.status is ExpansionStatus.EXPANDED
    assert result.content == FULL_TEXT
    assert result.resolved_section_id == "sec_3__subsec_2"
    assert client.expand_calls == [("DOC-7", EXCERPT, "Section 3(2)", "c-1")]


def test_table_excerpts_skip_section_lookup():
    client = FakeSectionClient(
        expanded=ExpandedSource(
            full_excerpt="short",
            tables=[{"headers": ["Item", "Fee"], "rows": [["Licence", 100]]}],
        )
    )
    source = _source(excerpt="1. | Licence | 100\n2. | Renewal | 50")
    result = asyncio.run(ExcerptExpander(client, timeout=1.0).expand(source))

    assert client.section_calls == []
    assert result.content == source.excerpt
    assert result.tables[0].rows == (("Item", "Fee"), ("Licence", "100"))


def test_failures_settle_on_the_excerpt():
    client = FakeSectionClient(section_error=True, expand_error=True)
    result = asyncio.run(ExcerptExpander(client, timeout=1.0).expand(_source()))
    assert result.status is ExpansionStatus.FALLBACK
    assert result.content == EXCERPT
    assert len(client.section_calls) == 1


def test_timeout_falls_back():
    client = FakeSectionClient(expanded=ExpandedSource(full_excerpt=FULL_TEXT), delay=0.5)
    result = asyncio.run(ExcerptExpander(client, timeout=0.01).expand(_source(section_id=None)))
    assert result.status is ExpansionStatus.FALLBACK
    assert result.content == EXCERPT


def test_concurrent_requests_share_one_fetch():
    client = FakeSectionClient(expanded=ExpandedSource(full_excerpt=FULL_TEXT), delay=0.01)
    expander = ExcerptExpander(client, timeout=1.0)

    async def run():
        return await asyncio.gather(expander.expand(_source(section_id=None)), expander.expand(_source(section_id=None)))

    first, second = asyncio.run(run())
    assert first == second
    assert len(client.expand_calls) == 1

    asyncio.run(expander.expand(_source(section_id=None)))
    assert len(client.expand_calls) == 1


def test_failed_fetch_retry_is_configurable():
    client = FakeSectionClient(expand_error=True)
    source = _source(section_id=None)

    keep = ExcerptExpander(client, timeout=1.0, retry_failed=False)
    asyncio.run(keep.expand(source))
    asyncio.run(keep.expand(source))
    assert len(client.expand_calls) == 1

    retry = ExcerptExpander(client, timeout=1.0, retry_failed=True)
    asyncio.run(retry.expand(source))
    asyncio.run(retry.expand(source))
    assert len(client.expand_calls) == 3


def test_navigator_applies_expansion_for_active_citation():
    client = FakeSectionClient(expanded=ExpandedSource(full_excerpt=FULL_TEXT))
    source = _source(section_id=None)

    async def run():
        nav = CitationNavigator(ExcerptExpander(client, timeout=1.0))
        nav.set_sources([source])
        nav.activate(source, 1)
        assert nav.state.expanding
        await nav.wait_for_expansion()
        return nav.state

    state = asyncio.run(run())
    assert state.detail.content == FULL_TEXT
    assert not state.expanding


def test_stale_results_are_discarded():
    client = FakeSectionClient(expanded=ExpandedSource(full_excerpt=FULL_TEXT))
    slow = _source(document_id="DOC-1", section_id="a", excerpt="SLOW " + EXCERPT)
    fast = _source(document_id="DOC-1", section_id="b")

    async def run():
        client.gates[slow.excerpt] = asyncio.Event()
        expander = ExcerptExpander(client, timeout=1.0)
        nav = CitationNavigator(expander)
        nav.set_sources([slow, fast])
        nav.activate(slow, 1)
        await asyncio.sleep(0)
        nav.next()
        await nav.wait_for_expansion()
        client.gates[slow.excerpt].set()
        await asyncio.sleep(0.01)
        return nav.state, expander

    state, expander = asyncio.run(run())
    assert state.active_source == fast
    assert state.detail.key == fast.key
    assert expander.cached(slow) is not None


def test_document_change_cancels_pending_work():
    client = FakeSectionClient(expanded=ExpandedSource(full_excerpt=FULL_TEXT))
    slow = _source(document_id="DOC-1", section_id="a")
    fast = _source(document_id="DOC-2", section_id="b")

    async def run():
        client.gates["DOC-1"] = asyncio.Event()
        expander = ExcerptExpander(client, timeout=1.0)
        nav = CitationNavigator(expander)
        nav.set_sources([slow, fast])
        nav.activate(slow, 1)
        await asyncio.sleep(0)
        nav.next()
        await nav.wait_for_expansion()
        client.gates["DOC-1"].set()
        await asyncio.sleep(0.01)
        return nav.state, expander

    state, expander = asyncio.run(run())
    assert state.detail.key == fast.key
    assert not expander.in_flight(slow)
    assert expander.cached(slow) is None


def test_replacing_sources_cancels_pending_work():
    client = FakeSectionClient(expanded=ExpandedSource(full_excerpt=FULL_TEXT))
    source = _source(section_id=None)

    async def run():
        client.gates["DOC-7"] = asyncio.Event()
        expander = ExcerptExpander(client, timeout=1.0)
        nav = CitationNavigator(expander)
        nav.set_sources([source])
        nav.activate(source, 1)
        await asyncio.sleep(0)
        assert expander.in_flight(source)
        nav.set_sources([])
        await asyncio.sleep(0)
        return nav.state, expander

    state, expander = asyncio.run(run())
    assert not expander.in_flight(source)
    assert expander.cached(source) is None
    assert state.detail is None


def test_excerpts_of_one_document_are_cached_separately():
    client = FakeSectionClient(expanded=ExpandedSource())
    expander = ExcerptExpander(client, timeout=1.0)
    penalties = _source(section_id=None, section="Section 12", excerpt="Penalties for late filing are set out here.")
    interpretation = _source(section_id=None, section="Section 2", excerpt="Interpretation of terms used in this Act.")
    same_section = _source(section_id=None, section="Section 12", excerpt="A further passage of the penalties section.")

    results = [asyncio.run(expander.expand(source)) for source in (penalties, interpretation, same_section)]

    assert [result.content for result in results] == [source.excerpt for source in (penalties, interpretation, same_section)]
    assert [result.key for result in results] == [penalties.key, interpretation.key, same_section.key]
    assert len(client.expand_calls) == 3


def test_result_settling_after_close_is_only_cached():
    client = FakeSectionClient(expanded=ExpandedSource(full_excerpt=FULL_TEXT))
    source = _source(section_id=None)
    seen = []

    async def run():
        client.gates["DOC-7"] = asyncio.Event()
        nav = CitationNavigator(ExcerptExpander(client, timeout=1.0))
        nav.set_sources([source])
        nav.activate(source, 1)
        await asyncio.sleep(0)
        nav.close()
        nav.subscribe(seen.append)
        client.gates["DOC-7"].set()
        await nav.wait_for_expansion()
        closed = nav.state
        nav.open()
        return closed, nav.state

    closed, reopened = asyncio.run(run())
    assert closed.detail is None
    assert [state.viewer_open for state in seen] == [True]
    assert reopened.detail.content == FULL_TEXT
    assert not reopened.expanding
    assert len(client.expand_calls) == 1


def test_reopening_during_a_fetch_reuses_it():
    client = FakeSectionClient(expanded=ExpandedSource(full_excerpt=FULL_TEXT))
    source = _source(section_id=None)

    async def run():
        client.gates["DOC-7"] = asyncio.Event()
        nav = CitationNavigator(ExcerptExpander(client, timeout=1.0))
        nav.set_sources([source])
        nav.activate(source, 1)
        await asyncio.sleep(0)
        nav.close()
        nav.open()
        await asyncio.sleep(0)
        nav.activate(source, 1)
        await asyncio.sleep(0)
        client.gates["DOC-7"].set()
        await nav.wait_for_expansion()
        return nav.state

    state = asyncio.run(run())
    assert state.detail.content == FULL_TEXT
    assert len(client.expand_calls) == 1


def test_dismiss_clears_cached_expansions():
    client = FakeSectionClient(expanded=ExpandedSource(full_excerpt=FULL_TEXT))
    source = _source(section_id=None)

    async def run():
        expander = ExcerptExpander(client, timeout=1.0)
        nav = CitationNavigator(expander)
        nav.set_sources([source])
        nav.activate(source, 1)
        await nav.wait_for_expansion()
        assert expander.cached(source) is not None
        nav.dismiss()
        return nav.state, expander

    state, expander = asyncio.run(run())
    assert expander.cached(source) is None
    assert state.detail is None
    assert state.active_source is None
