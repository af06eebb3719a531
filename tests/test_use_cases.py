"""End-to-end pipeline tests over an in-memory chain."""

from datetime import date, datetime, timezone

import pytest

from conftest import CONTRACT, FakeChain, make_log
from showdown_winrate.application.use_cases import compute_winrate
from showdown_winrate.config import WinrateQuery
from showdown_winrate.domain.errors import TransportError

UTC = timezone.utc
DAY = 86_400
T0 = int(datetime(2025, 3, 1, tzinfo=UTC).timestamp())

# one block per hour for ten days, starting 2025-03-01 00:00 UTC
TIMESTAMPS = [T0 + h * 3_600 for h in range(24 * 10)]


def _query(**kw):
    kw.setdefault("player", "alice")
    kw.setdefault("inter_batch_delay_ms", 0)
    return WinrateQuery(rpc_url="https://rpc.test", contract_address=CONTRACT, **kw)


@pytest.fixture
def chain():
    logs = [
        make_log(2, winning_player="Alice", losing_player="Bob"),         # 03-01
        make_log(30, winning_player="Bob", losing_player="alice "),       # 03-02
        make_log(30, log_index=1, winning_player="Carol", losing_player="Dave"),
        make_log(55, winning_player="ALICE", losing_player="Carol"),      # 03-03
        make_log(200, winning_player="Alice", losing_player="Dave"),      # 03-09
        make_log(201, data_hex="0xdeadbeef"),                             # undecodable
    ]
    return FakeChain(TIMESTAMPS, logs)


class TestComputeWinrate:

    @pytest.mark.asyncio
    async def test_all_time(self, chain):
        report = await compute_winrate(rpc=chain, query=_query(), tz=UTC)
        assert (report.from_block, report.to_block) == (0, len(TIMESTAMPS) - 1)
        assert report.raw_logs == 6
        assert len(report.matches) == 5
        s = report.stats
        assert (s.wins, s.losses, s.total) == (3, 1, 4)
        assert s.winrate == pytest.approx(0.75)
        assert [v.result for v in report.player_view] == ["W", "L", "W", "W"]

    @pytest.mark.asyncio
    async def test_date_window_selects_blocks(self, chain):
        q = _query(start_date=date(2025, 3, 2), end_date=date(2025, 3, 3))
        report = await compute_winrate(rpc=chain, query=q, tz=UTC)
        assert (report.from_block, report.to_block) == (24, 71)
        assert [m.block_number for m in report.matches] == [30, 30, 55]
        assert (report.stats.wins, report.stats.losses) == (1, 1)

    @pytest.mark.asyncio
    async def test_matches_are_ordered_by_block(self, chain):
        report = await compute_winrate(rpc=chain, query=_query(), tz=UTC)
        blocks = [m.block_number for m in report.matches]
        assert blocks == sorted(blocks)

    @pytest.mark.asyncio
    async def test_inverted_dates_give_empty_report(self, chain):
        q = _query(start_date=date(2025, 3, 5), end_date=date(2025, 3, 2))
        report = await compute_winrate(rpc=chain, query=q, tz=UTC)
        assert report.empty_range
        assert report.matches == () and report.player_view == ()
        assert report.stats.total == 0 and report.stats.winrate == 0.0
        assert chain.batches == []

    @pytest.mark.asyncio
    async def test_future_start_gives_empty_report(self, chain):
        q = _query(start_date=date(2030, 1, 1))
        report = await compute_winrate(rpc=chain, query=q, tz=UTC)
        assert report.empty_range

    @pytest.mark.asyncio
    async def test_transport_failure_propagates(self):
        chain = FakeChain(TIMESTAMPS, fail_on_batch=1)
        with pytest.raises(TransportError):
            await compute_winrate(rpc=chain, query=_query(), tz=UTC)

    @pytest.mark.asyncio
    async def test_progress_reaches_total(self, chain):
        seen = []
        await compute_winrate(rpc=chain, query=_query(), tz=UTC, on_progress=lambda d, t: seen.append((d, t)))
        assert seen == [(1, 1)]
