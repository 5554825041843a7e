"""
Context Orchestrator — Unit Tests
=================================

Fan-out/join, per-category fault tolerance, caching, deadline handling
and combined-context ordering.
"""

import asyncio

import pytest

from central_brain.core.types import ContextCategory
from central_brain.infra.cache import ContextCache
from central_brain.orchestration.context import (
    ContextOrchestrator,
    combine_context,
    context_cache_key,
)
from central_brain.orchestration.deadline import RequestDeadline
from central_brain.orchestration.models import ProcessingContext

from fakes import FakeKnowledge, make_request

REG = ContextCategory.REGULATORY
DOC = ContextCategory.DOCUMENT
HIST = ContextCategory.HISTORICAL


class TestGatherContext:
    @pytest.mark.asyncio
    async def test_no_categories_returns_empty_context(self):
        knowledge = FakeKnowledge("unused")
        orch = ContextOrchestrator(knowledge_source=knowledge)
        ctx = await orch.gather_context(make_request(), [])
        assert ctx.is_empty
        assert knowledge.calls == []

    @pytest.mark.asyncio
    async def test_regulatory_fetch_uses_knowledge_source(self):
        knowledge = FakeKnowledge("Rule 8.05 requires a profit test.")
        orch = ContextOrchestrator(knowledge_source=knowledge)
        req = make_request("What regulation applies?", feature="ipo")
        ctx = await orch.gather_context(req, [REG])
        assert ctx.regulatory == "Rule 8.05 requires a profit test."
        assert knowledge.calls == [
            {"query": "What regulation applies?", "is_preliminary": False, "feature": "ipo"}
        ]

    @pytest.mark.asyncio
    async def test_placeholder_categories_stay_absent(self):
        orch = ContextOrchestrator(knowledge_source=FakeKnowledge("R"))
        ctx = await orch.gather_context(make_request("law"), [REG, DOC, HIST])
        assert ctx.regulatory == "R"
        assert ctx.document is None
        assert ctx.historical is None

    @pytest.mark.asyncio
    async def test_failed_fetch_is_omitted_not_raised(self):
        orch = ContextOrchestrator(knowledge_source=FakeKnowledge(fail=True))
        ctx = await orch.gather_context(make_request("law"), [REG])
        assert ctx.regulatory is None
        assert orch.get_stats()["fetch_failures"] == 1

    @pytest.mark.asyncio
    async def test_failed_fetch_is_not_cached(self):
        knowledge = FakeKnowledge("Rule 8.05", fail=True)
        orch = ContextOrchestrator(knowledge_source=knowledge)
        first = await orch.gather_context(make_request("law"), [REG])
        assert first.regulatory is None

        knowledge.fail = False
        second = await orch.gather_context(make_request("law"), [REG])
        assert second.regulatory == "Rule 8.05"
        assert len(knowledge.calls) == 2

    @pytest.mark.asyncio
    async def test_failure_does_not_block_other_categories(self):
        orch = ContextOrchestrator(knowledge_source=FakeKnowledge(fail=True))

        async def history(_request):
            return "earlier turn"

        orch.register_fetcher(HIST, history)
        ctx = await orch.gather_context(make_request("previous law"), [REG, HIST])
        assert ctx.regulatory is None
        assert ctx.historical == "earlier turn"

    @pytest.mark.asyncio
    async def test_fetches_run_concurrently(self):
        orch = ContextOrchestrator()
        released = asyncio.Event()

        async def regulatory(_request):
            # Completes only if the historical fetch runs alongside it
            await asyncio.wait_for(released.wait(), timeout=1.0)
            return "reg"

        async def history(_request):
            released.set()
            return "hist"

        orch.register_fetcher(REG, regulatory)
        orch.register_fetcher(HIST, history)
        ctx = await orch.gather_context(make_request("previous law"), [REG, HIST])
        assert ctx.regulatory == "reg"
        assert ctx.historical == "hist"

    @pytest.mark.asyncio
    async def test_second_gather_hits_cache(self):
        knowledge = FakeKnowledge("R")
        orch = ContextOrchestrator(knowledge_source=knowledge)
        req = make_request("law")
        first = await orch.gather_context(req, [REG])
        second = await orch.gather_context(req, [REG])
        assert first.regulatory == second.regulatory == "R"
        assert len(knowledge.calls) == 1
        assert orch.get_stats()["cache"]["hits"] == 1

    @pytest.mark.asyncio
    async def test_caching_disabled(self):
        knowledge = FakeKnowledge("R")
        orch = ContextOrchestrator(knowledge_source=knowledge, enable_caching=False)
        req = make_request("law")
        await orch.gather_context(req, [REG])
        await orch.gather_context(req, [REG])
        assert len(knowledge.calls) == 2

    @pytest.mark.asyncio
    async def test_reset_drains_cache(self):
        knowledge = FakeKnowledge("R")
        orch = ContextOrchestrator(knowledge_source=knowledge)
        req = make_request("law")
        await orch.gather_context(req, [REG])
        orch.reset()
        await orch.gather_context(req, [REG])
        assert len(knowledge.calls) == 2

    @pytest.mark.asyncio
    async def test_injected_cache_is_used(self):
        cache = ContextCache(max_entries=5)
        orch = ContextOrchestrator(knowledge_source=FakeKnowledge("R"), cache=cache)
        await orch.gather_context(make_request("law"), [REG])
        assert cache.size == 1


class TestDeadline:
    @pytest.mark.asyncio
    async def test_slow_fetch_is_cancelled_and_omitted(self):
        orch = ContextOrchestrator(
            knowledge_source=FakeKnowledge("late", delay=5.0),
            fetch_timeout_s=0.05,
        )

        async def history(_request):
            return "quick"

        orch.register_fetcher(HIST, history)
        req = make_request("previous law")
        ctx = await orch.gather_context(req, [REG, HIST], RequestDeadline(total_s=10))
        assert ctx.regulatory is None
        assert ctx.historical == "quick"
        stats = orch.get_stats()
        assert stats["timeouts"] == 1
        # Degraded results are not cached
        assert stats["cache"]["size"] == 0

    @pytest.mark.asyncio
    async def test_request_deadline_clamps_fetch_timeout(self):
        orch = ContextOrchestrator(
            knowledge_source=FakeKnowledge("late", delay=5.0),
            fetch_timeout_s=30,
        )
        ctx = await orch.gather_context(make_request("law"), [REG], RequestDeadline(total_s=0.05))
        assert ctx.is_empty


class TestCombineContext:
    def test_fixed_order_regardless_of_field_order(self):
        ctx = ProcessingContext(document="D", regulatory="R", historical="H")
        combined = combine_context(ctx)
        assert combined == (
            "Regulatory Context:\nR\n\nDocument Context:\nD\n\nHistorical Context:\nH"
        )
        assert combined.index("Regulatory") < combined.index("Document")

    def test_skips_missing_and_empty(self):
        assert combine_context(ProcessingContext(regulatory="R", document="")) == (
            "Regulatory Context:\nR"
        )

    def test_empty_context(self):
        assert combine_context(ProcessingContext()) == ""

    def test_cache_key_ignores_category_order(self):
        req = make_request("law")
        assert context_cache_key(req, [REG, HIST]) == context_cache_key(req, [HIST, REG])
