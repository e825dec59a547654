import asyncio
import time
import unittest

import httpx

from status_api.checks.http_check import HttpProber, run_http
from status_api.checks.results import ProbeResult


def _transport(routes: dict[str, object], seen: list[str] | None = None) -> httpx.MockTransport:
    """Mock transport keyed by host; a route is a status code or an async callable."""

    async def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request.url.host)
        route = routes[request.url.host]
        if callable(route):
            return await route(request)
        return httpx.Response(route)

    return httpx.MockTransport(handler)


class RunHttpTests(unittest.IsolatedAsyncioTestCase):
    async def test_sends_connect_and_read_timeouts(self) -> None:
        captured: dict = {}

        async def record(request: httpx.Request) -> httpx.Response:
            captured.update(request.extensions["timeout"])
            return httpx.Response(200)

        result = await run_http(
            "https://example.com",
            timeout_s=3.0,
            connect_timeout_s=2.0,
            transport=_transport({"example.com": record}),
        )

        self.assertEqual(result.code, 200)
        self.assertTrue(result.online)
        self.assertEqual(captured["connect"], 2.0)
        self.assertEqual(captured["read"], 3.0)

    async def test_status_codes_are_classified(self) -> None:
        for code, online in [(204, True), (401, True), (404, False), (502, False)]:
            with self.subTest(code=code):
                result = await run_http(
                    "https://example.com",
                    timeout_s=3,
                    transport=_transport({"example.com": code}),
                )
                self.assertEqual(result.code, code)
                self.assertEqual(result.online, online)

    async def test_follows_redirects(self) -> None:
        async def moved(request: httpx.Request) -> httpx.Response:
            return httpx.Response(301, headers={"Location": "https://new.example/"})

        seen: list[str] = []
        result = await run_http(
            "https://old.example",
            timeout_s=3,
            transport=_transport({"old.example": moved, "new.example": 200}, seen),
        )

        self.assertEqual(result.code, 200)
        self.assertEqual(seen, ["old.example", "new.example"])

    async def test_transport_errors_resolve_to_code_zero(self) -> None:
        errors = [
            httpx.ConnectError("refused"),
            httpx.ConnectTimeout("slow"),
            httpx.ReadTimeout("slow body"),
        ]
        for exc in errors:
            with self.subTest(exc=exc.__class__.__name__):

                async def fail(request: httpx.Request, exc=exc) -> httpx.Response:
                    raise exc

                result = await run_http(
                    "https://down.invalid",
                    timeout_s=3,
                    connect_timeout_s=2,
                    transport=_transport({"down.invalid": fail}),
                )
                self.assertFalse(result.online)
                self.assertEqual(result.code, 0)
                self.assertGreaterEqual(result.elapsed_ms, 0)

    async def test_malformed_url_resolves_to_code_zero(self) -> None:
        result = await run_http("https://", timeout_s=3, transport=_transport({}))

        self.assertFalse(result.online)
        self.assertEqual(result.code, 0)

    async def test_elapsed_counts_from_given_start(self) -> None:
        start = time.perf_counter() - 0.5

        result = await run_http(
            "https://example.com",
            timeout_s=3,
            start=start,
            transport=_transport({"example.com": 200}),
        )

        self.assertGreaterEqual(result.elapsed_ms, 500)


class HttpProberTests(unittest.IsolatedAsyncioTestCase):
    async def test_returns_transport_result(self) -> None:
        prober = HttpProber(transport=_transport({"example.com": 301}))

        result = await prober.probe("https://example.com")

        self.assertEqual((result.online, result.code), (True, 301))

    async def test_hung_transport_hits_deadline_and_is_cancelled(self) -> None:
        cancelled = asyncio.Event()

        async def hang(request: httpx.Request) -> httpx.Response:
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise
            return httpx.Response(200)

        prober = HttpProber(deadline_s=0.05, transport=_transport({"hang.example": hang}))

        start = time.perf_counter()
        result = await prober.probe("https://hang.example")
        waited = time.perf_counter() - start

        self.assertEqual(result, ProbeResult(online=False, code=0, elapsed_ms=50))
        self.assertLess(waited, 1.0)
        await asyncio.wait_for(cancelled.wait(), 1.0)
        self.assertEqual(result, ProbeResult(online=False, code=0, elapsed_ms=50))

    async def test_hung_probes_do_not_starve_healthy_ones(self) -> None:
        async def hang(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(10)
            return httpx.Response(200)

        seen: list[str] = []
        prober = HttpProber(
            deadline_s=0.3,
            transport=_transport(
                {"hang1.lan": hang, "hang2.lan": hang, "healthy.lan": 200}, seen
            ),
        )

        hung1, hung2, healthy = await asyncio.gather(
            prober.probe("https://hang1.lan"),
            prober.probe("https://hang2.lan"),
            prober.probe("https://healthy.lan"),
        )

        self.assertEqual(hung1.code, 0)
        self.assertEqual(hung2.code, 0)
        self.assertTrue(healthy.online)
        self.assertEqual(healthy.code, 200)
        self.assertLess(healthy.elapsed_ms, 300)
        self.assertIn("healthy.lan", seen)

    async def test_concurrent_probes_measure_from_invocation(self) -> None:
        async def slow(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(0.2)
            return httpx.Response(200)

        async def fast(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(0.05)
            return httpx.Response(200)

        prober = HttpProber(transport=_transport({"slow.lan": slow, "fast.lan": fast}))

        start = time.perf_counter()
        slow_result, fast_result = await asyncio.gather(
            prober.probe("https://slow.lan"), prober.probe("https://fast.lan")
        )
        wall = time.perf_counter() - start

        self.assertGreaterEqual(slow_result.elapsed_ms, 180)
        self.assertGreaterEqual(fast_result.elapsed_ms, 40)
        self.assertLess(fast_result.elapsed_ms, 180)
        self.assertLess(wall, 0.4)

    async def test_default_deadline_matches_request_timeout(self) -> None:
        prober = HttpProber()

        self.assertEqual(prober.deadline_s, 3.0)
        self.assertEqual(prober.connect_timeout_s, 2.0)


if __name__ == "__main__":
    unittest.main()
