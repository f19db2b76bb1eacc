from decimal import Decimal

from store import CoinStore, PoolStore, UpdateOutcome, UserShareStore, WalletStore

T0 = "2024-01-01T00:00:00Z"
T1 = "2024-01-01T00:00:01Z"
T2 = "2024-01-01T00:00:02Z"


def _pool(pool_id="p1", reserve_a="1000", reserve_b="2000", updated_at=T0, **extra):
    payload = {
        "id": pool_id,
        "coinA": {"ticker": "RUNES", "dp": 8},
        "coinB": {"ticker": "DOG", "dp": 5},
        "reserveA": reserve_a,
        "reserveB": reserve_b,
        "totalShares": "100",
        "lpFeeRate": "30",
        "treasuryFeeRate": "5",
        "runesCompliant": True,
        "updatedAt": updated_at,
    }
    payload.update(extra)
    return payload


class TestPoolStore:
    def test_snapshot_replaces_everything(self):
        store = PoolStore()
        store.apply_snapshot([_pool("p1"), _pool("p2")])
        store.apply_snapshot([_pool("p3")])
        assert [pool.id for pool in store.get_all()] == ["p3"]
        assert store.is_initial_received

    def test_newer_update_merges_present_fields_only(self):
        store = PoolStore()
        store.apply_snapshot([_pool()])
        outcome = store.apply_update({"id": "p1", "reserveA": "1500", "updatedAt": T1})
        assert outcome == UpdateOutcome.MERGED
        pool = store.get("p1")
        assert pool.reserve_a == 1500
        assert pool.reserve_b == 2000
        assert pool.lp_fee_rate == Decimal("30")

    def test_stale_update_leaves_pool_unchanged(self):
        store = PoolStore()
        store.apply_snapshot([_pool(updated_at=T1)])
        before = store.get("p1")

        equal = store.apply_update({"id": "p1", "reserveA": "1", "updatedAt": T1})
        older = store.apply_update({"id": "p1", "reserveA": "2", "updatedAt": T0})
        missing = store.apply_update({"id": "p1", "reserveA": "3"})

        assert equal == older == missing == UpdateOutcome.STALE
        assert store.get("p1") == before

    def test_zero_total_shares_evicts(self):
        store = PoolStore()
        store.apply_snapshot([_pool()])
        outcome = store.apply_update({"id": "p1", "totalShares": "0", "updatedAt": T1})
        assert outcome == UpdateOutcome.EVICTED
        assert store.get("p1") is None
        assert len(store) == 0

    def test_new_pool_requires_coins_and_shares(self):
        store = PoolStore()
        store.apply_snapshot([])
        outcome = store.apply_update({"id": "p9", "reserveA": "10", "updatedAt": T0})
        assert outcome == UpdateOutcome.INCOMPLETE
        assert store.get("p9") is None

        zero = _pool("p8", totalShares="0")
        assert store.apply_update(zero) == UpdateOutcome.INCOMPLETE

        assert store.apply_update(_pool("p7")) == UpdateOutcome.INSERTED
        assert store.get("p7") is not None

    def test_snapshot_skips_incomplete_records(self):
        store = PoolStore()
        store.apply_snapshot([_pool("p1"), {"id": "p2", "reserveA": "1"}])
        assert [pool.id for pool in store.get_all()] == ["p1"]

    def test_missing_fee_rates_use_defaults(self):
        store = PoolStore()
        payload = _pool()
        del payload["lpFeeRate"]
        del payload["treasuryFeeRate"]
        store.apply_snapshot([payload])
        pool = store.get("p1")
        assert pool.lp_fee_rate == Decimal("30")
        assert pool.treasury_fee_rate == Decimal("5")

    def test_updates_before_snapshot_are_replayed_in_order(self):
        direct = PoolStore()
        direct.apply_snapshot([_pool()])
        direct.apply_update({"id": "p1", "reserveA": "1100", "updatedAt": T1})
        direct.apply_update({"id": "p1", "reserveA": "1200", "updatedAt": T2})

        buffered = PoolStore()
        assert (
            buffered.apply_update({"id": "p1", "reserveA": "1100", "updatedAt": T1})
            == UpdateOutcome.BUFFERED
        )
        buffered.apply_update({"id": "p1", "reserveA": "1200", "updatedAt": T2})
        assert buffered.pending_count == 2
        assert buffered.get_all() == []

        buffered.apply_snapshot([_pool()])
        assert buffered.pending_count == 0
        assert buffered.get("p1") == direct.get("p1")
        assert buffered.get("p1").reserve_a == 1200

    def test_reset_clears_state_and_pending(self):
        store = PoolStore()
        store.apply_update(_pool())
        store.apply_snapshot([_pool()])
        store.reset()
        assert len(store) == 0
        assert store.pending_count == 0
        assert not store.is_initial_received
        assert store.wait_initial(timeout=0) is False

    def test_liquidity_shares_upsert_and_remove(self):
        store = PoolStore()
        store.apply_snapshot(
            [
                _pool(
                    liquidityShares=[
                        {"id": "u1", "shares": "10"},
                        {"id": "u2", "shares": "20"},
                    ]
                )
            ]
        )
        store.apply_update(
            {
                "id": "p1",
                "liquidityShares": [
                    {"id": "u1", "shares": "0"},
                    {"id": "u2", "shares": "25"},
                    {"id": "u3", "shares": "5"},
                ],
                "updatedAt": T1,
            }
        )
        shares = {s.id: s.shares for s in store.get("p1").liquidity_shares}
        assert shares == {"u2": 25, "u3": 5}

    def test_malformed_item_is_dropped(self):
        store = PoolStore()
        store.apply_snapshot([_pool()])
        assert store.apply_update({"reserveA": "1"}) == UpdateOutcome.INCOMPLETE
        assert store.apply_update(["p1", "reserveA"]) == UpdateOutcome.INCOMPLETE
        assert store.apply_update("p1") == UpdateOutcome.INCOMPLETE
        assert store.apply_update(None) == UpdateOutcome.INCOMPLETE
        assert store.get("p1").reserve_a == 1000

    def test_non_object_snapshot_items_are_skipped(self):
        store = PoolStore()
        store.apply_snapshot([_pool("p1"), ["not", "a", "record"], 42, _pool("p2")])
        assert sorted(pool.id for pool in store.get_all()) == ["p1", "p2"]


class TestCoinStore:
    def test_coin_requires_dp_ticker_and_status(self):
        store = CoinStore()
        store.apply_snapshot(
            [
                {"id": "c1", "ticker": "DOG", "dp": 5, "status": "active"},
                {"id": "c2", "ticker": "CAT", "status": "active"},
            ]
        )
        assert store.get("c2") is None
        coin = store.get_by_ticker("DOG")
        assert coin.id == "c1"
        assert coin.compliance_requirement == 100_000_000_000

    def test_coin_update_keeps_absent_fields(self):
        store = CoinStore()
        store.apply_snapshot(
            [
                {
                    "id": "c1",
                    "ticker": "DOG",
                    "dp": 5,
                    "status": "active",
                    "projectName": "Dog",
                    "updatedAt": T0,
                }
            ]
        )
        store.apply_update({"id": "c1", "status": "paused", "updatedAt": T1})
        coin = store.get("c1")
        assert coin.status == "paused"
        assert coin.project_name == "Dog"


class TestWalletStore:
    def test_wallet_keyed_by_ticker(self):
        store = WalletStore()
        store.apply_snapshot(
            [{"ticker": "DOG", "available": "10", "locked": "2", "updatedAt": T0}]
        )
        store.apply_update({"ticker": "DOG", "available": "7", "updatedAt": T1})
        wallet = store.get("DOG")
        assert wallet.available == 7
        assert wallet.locked == 2
        assert wallet.total == 9

    def test_negative_balance_is_incomplete(self):
        store = WalletStore()
        store.apply_snapshot([])
        outcome = store.apply_update({"ticker": "DOG", "available": "-1", "locked": "0"})
        assert outcome == UpdateOutcome.INCOMPLETE

    def test_negative_balance_merge_is_rejected(self):
        store = WalletStore()
        store.apply_snapshot(
            [{"ticker": "DOG", "available": "10", "locked": "2", "updatedAt": T0}]
        )
        outcome = store.apply_update({"ticker": "DOG", "locked": "-5", "updatedAt": T1})
        assert outcome == UpdateOutcome.REJECTED
        wallet = store.get("DOG")
        assert wallet.available == 10
        assert wallet.locked == 2

        outcome = store.apply_update({"ticker": "DOG", "available": "3", "updatedAt": T2})
        assert outcome == UpdateOutcome.MERGED
        assert store.get("DOG").available == 3


class TestUserShareStore:
    def test_zero_shares_never_stored(self):
        store = UserShareStore()
        store.apply_snapshot(
            [
                {"poolId": "p1", "shares": "10", "updatedAt": T0},
                {"poolId": "p2", "shares": "0", "updatedAt": T0},
            ]
        )
        assert store.get("p2") is None

        outcome = store.apply_update({"poolId": "p1", "shares": "0", "updatedAt": T1})
        assert outcome == UpdateOutcome.EVICTED
        assert len(store) == 0
