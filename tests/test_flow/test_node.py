"""Tests for flow.node module."""

import asyncio
import pytest

from flow.exceptions import NodeTimeoutError
from flow.node import BaseNode, Node, DEFAULT_ACTION


class TestBaseNode:
    """Test suite for the BaseNode lifecycle and successor map."""

    def test_node_id_generated_from_class_name(self):
        """Test that a node without an id gets one derived from its class."""
        node = BaseNode()
        assert node.node_id.startswith("BaseNode-")

    def test_params_are_read_only(self):
        """Test that injected params can be read but not mutated."""
        node = BaseNode()
        node.set_params({"a": 1})

        assert node.params["a"] == 1
        with pytest.raises(TypeError):
            node.params["a"] = 2

    def test_set_params_copies_input(self):
        """Test that later changes to the source dict do not leak in."""
        source = {"a": 1}
        node = BaseNode()
        node.set_params(source)
        source["a"] = 2

        assert node.params["a"] == 1

    def test_on_returns_successor_for_chaining(self):
        """Test that on() returns the successor node."""
        a, b, c = BaseNode(), BaseNode(), BaseNode()
        a.on("go", b).on("go", c)

        assert a.successors["go"] is b
        assert b.successors["go"] is c

    def test_next_uses_default_label(self):
        """Test that next() registers under the default label."""
        a, b = BaseNode(), BaseNode()
        a.next(b)
        assert a.successors[DEFAULT_ACTION] is b

    def test_overwriting_successor_warns(self, caplog):
        """Test that re-registering a label logs a warning and overwrites."""
        a, b, c = BaseNode(), BaseNode(), BaseNode()
        a.on("go", b)
        a.on("go", c)

        assert a.successors["go"] is c
        assert "Overwriting successor" in caplog.text

    def test_get_successor_falls_back_to_default_for_empty_label(self):
        """Test that None and empty labels resolve to the default successor."""
        a, b = BaseNode(), BaseNode()
        a.next(b)

        assert a.get_successor(None) is b
        assert a.get_successor("") is b

    def test_get_successor_unknown_label(self):
        """Test that an unregistered label does not resolve."""
        a, b = BaseNode(), BaseNode()
        a.next(b)
        assert a.get_successor("missing") is None

    @pytest.mark.asyncio
    async def test_run_executes_three_phases(self):
        """Test that run() calls prep, exec and post in order."""
        calls = []

        class Recorder(BaseNode):
            async def prep(self, shared):
                calls.append("prep")
                return shared["value"]

            async def exec(self, prep_res):
                calls.append("exec")
                return prep_res * 2

            async def post(self, shared, prep_res, exec_res):
                calls.append("post")
                shared["result"] = exec_res
                return "done"

        shared = {"value": 21}
        action = await Recorder().run(shared)

        assert calls == ["prep", "exec", "post"]
        assert shared["result"] == 42
        assert action == "done"

    @pytest.mark.asyncio
    async def test_run_with_successors_warns(self, caplog):
        """Test that running a node with successors directly warns."""
        a = BaseNode()
        a.next(BaseNode())

        await a.run({})
        assert "not followed" in caplog.text


class TestNodeRetries:
    """Test suite for the Node retry policy."""

    def test_invalid_retry_settings(self):
        """Test that invalid retry settings are rejected."""
        with pytest.raises(ValueError):
            Node(max_retries=0)
        with pytest.raises(ValueError):
            Node(wait=-1)

    @pytest.mark.asyncio
    async def test_succeeds_on_third_attempt(self):
        """Test that exec is retried until it succeeds."""
        attempts = []

        class Flaky(Node):
            async def exec(self, prep_res):
                attempts.append(self.cur_retry)
                if len(attempts) < 3:
                    raise RuntimeError("not yet")
                return "ok"

            async def post(self, shared, prep_res, exec_res):
                shared["result"] = exec_res

        shared = {}
        await Flaky(max_retries=3).run(shared)

        assert attempts == [0, 1, 2]
        assert shared["result"] == "ok"

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise(self):
        """Test that the last error propagates when no fallback is defined."""
        attempts = []

        class AlwaysFails(Node):
            async def exec(self, prep_res):
                attempts.append(1)
                raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await AlwaysFails(max_retries=2).run({})
        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_fallback_result_used(self):
        """Test that exec_fallback can supply a result."""

        class WithFallback(Node):
            async def exec(self, prep_res):
                raise RuntimeError("boom")

            async def exec_fallback(self, prep_res, exc):
                return f"fallback: {exc}"

            async def post(self, shared, prep_res, exec_res):
                shared["result"] = exec_res

        shared = {}
        await WithFallback(max_retries=2).run(shared)
        assert shared["result"] == "fallback: boom"

    @pytest.mark.asyncio
    async def test_wait_between_attempts(self):
        """Test that the node sleeps between attempts but not after the last."""

        class AlwaysFails(Node):
            async def exec(self, prep_res):
                raise RuntimeError("boom")

            async def exec_fallback(self, prep_res, exc):
                return None

        loop = asyncio.get_running_loop()
        start = loop.time()
        await AlwaysFails(max_retries=3, wait=0.05).run({})
        elapsed = loop.time() - start

        assert 0.1 <= elapsed < 0.5

    @pytest.mark.asyncio
    async def test_timeout_counts_as_failure(self):
        """Test that a timed out attempt raises NodeTimeoutError."""

        class Slow(Node):
            async def exec(self, prep_res):
                await asyncio.sleep(1)

        with pytest.raises(NodeTimeoutError, match="timed out"):
            await Slow(timeout=0.01, node_id="slow").run({})

    @pytest.mark.asyncio
    async def test_own_timeout_error_not_relabelled(self):
        """Test that a TimeoutError raised by exec itself propagates unchanged."""

        class UpstreamTimeout(Node):
            async def exec(self, prep_res):
                raise TimeoutError("upstream service timed out")

        with pytest.raises(TimeoutError, match="upstream service") as exc_info:
            await UpstreamTimeout(timeout=5, node_id="upstream").run({})
        assert not isinstance(exc_info.value, NodeTimeoutError)

    @pytest.mark.asyncio
    async def test_own_timeout_error_retried(self):
        """Test that exec's own TimeoutError is an ordinary failed attempt."""
        attempts = []

        class FlakyUpstream(Node):
            async def exec(self, prep_res):
                attempts.append(self.cur_retry)
                if len(attempts) == 1:
                    raise asyncio.TimeoutError()
                return "ok"

            async def post(self, shared, prep_res, exec_res):
                shared["result"] = exec_res

        shared = {}
        await FlakyUpstream(max_retries=2, timeout=5).run(shared)

        assert attempts == [0, 1]
        assert shared["result"] == "ok"

    @pytest.mark.asyncio
    async def test_timeout_is_retried(self):
        """Test that a timeout is subject to retry."""
        attempts = []

        class SlowThenFast(Node):
            async def exec(self, prep_res):
                attempts.append(1)
                if len(attempts) == 1:
                    await asyncio.sleep(1)
                return "fast"

            async def post(self, shared, prep_res, exec_res):
                shared["result"] = exec_res

        shared = {}
        await SlowThenFast(max_retries=2, timeout=0.05).run(shared)
        assert shared["result"] == "fast"

    @pytest.mark.asyncio
    async def test_prep_and_post_not_retried(self):
        """Test that failures in prep are not retried."""
        preps = []

        class BadPrep(Node):
            async def prep(self, shared):
                preps.append(1)
                raise ValueError("bad prep")

        with pytest.raises(ValueError):
            await BadPrep(max_retries=3).run({})
        assert len(preps) == 1
