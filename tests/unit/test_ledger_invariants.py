"""
Property-based тесты инвариантов share-ledger (hypothesis)

Проверяет на случайных последовательностях операций:
1. total_shares == Σ share_balance во всех достижимых состояниях
2. balance_of == 0 при total_shares == 0
3. Отклонённая операция не меняет состояние
4. Пропорциональность двух депозитов
5. Σ balance_of ≤ pool_value (floor-округление не создаёт стоимость)
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from src.ledger import InMemoryPool, LedgerError, ShareToken

HOLDERS = ["alice", "bob", "carol", "dave"]

holders = st.sampled_from(HOLDERS)
amounts = st.integers(min_value=0, max_value=10**6)

operations = st.one_of(
    st.tuples(st.just("mint"), holders, amounts, st.integers(min_value=0, max_value=10_000)),
    st.tuples(st.just("burn"), holders, amounts, holders),
    st.tuples(st.just("transfer"), holders, holders, amounts),
    st.tuples(st.just("transfer_from"), holders, holders, amounts, holders),
    st.tuples(st.just("approve"), holders, holders, amounts),
    st.tuples(st.just("yield"), amounts),
)


def apply(token: ShareToken, op: tuple) -> None:
    kind = op[0]
    if kind == "mint":
        _, to, amount, bp = op
        token.mint(to, amount, bp)
    elif kind == "burn":
        _, holder, amount, caller = op
        token.burn(holder, amount, caller=caller)
    elif kind == "transfer":
        _, sender, to, amount = op
        token.transfer(to, amount, caller=sender)
    elif kind == "transfer_from":
        _, sender, to, amount, caller = op
        token.transfer_from(sender, to, amount, caller=caller)
    elif kind == "approve":
        _, owner, spender, amount = op
        token.approve(spender, amount, caller=owner)
    elif kind == "yield":
        token.receive_yield(op[1])


class TestLedgerInvariants:
    """Инварианты на случайных последовательностях операций"""

    @settings(max_examples=200, deadline=None)
    @given(st.lists(operations, max_size=40))
    def test_share_sum_invariant(self, ops) -> None:
        token = ShareToken()
        for op in ops:
            try:
                apply(token, op)
            except LedgerError:
                pass
            snap = token.snapshot()
            assert snap.total_shares == sum(snap.share_balances.values())
            assert all(v >= 0 for v in snap.share_balances.values())
            token.ledger.check_invariants()

    @settings(max_examples=200, deadline=None)
    @given(st.lists(operations, max_size=40))
    def test_balances_never_exceed_pool(self, ops) -> None:
        token = ShareToken()
        for op in ops:
            try:
                apply(token, op)
            except LedgerError:
                pass
            total_balance = sum(token.balance_of(h) for h in HOLDERS)
            assert total_balance <= token.total_supply()
            if token.total_shares() == 0:
                assert total_balance == 0

    @settings(max_examples=200, deadline=None)
    @given(st.lists(operations, max_size=30))
    def test_rejected_operation_is_noop(self, ops) -> None:
        token = ShareToken()
        for op in ops:
            before = token.snapshot()
            pool_before = token.total_supply()
            external_before = {h: token.pool.external_balance(h) for h in HOLDERS}
            try:
                apply(token, op)
            except LedgerError:
                assert token.snapshot() == before
                assert token.total_supply() == pool_before
                assert {h: token.pool.external_balance(h) for h in HOLDERS} == external_before

    @given(
        st.integers(min_value=1, max_value=10**30),
        st.integers(min_value=1, max_value=10**30),
    )
    def test_two_deposits_proportional(self, a: int, b: int) -> None:
        token = ShareToken()
        token.mint("alice", a)
        token.mint("bob", b)
        assert abs(token.balance_of("alice") - a) <= 1
        assert abs(token.balance_of("bob") - b) <= 1

    @given(st.integers(min_value=1, max_value=10**30))
    def test_first_deposit_round_trip(self, v: int) -> None:
        token = ShareToken()
        assert token.mint("alice", v) == v
        assert token.shares_of("alice") == v
        assert token.balance_of("alice") == v

    @given(st.integers(min_value=0, max_value=10**30))
    def test_balance_zero_without_shares(self, inflow: int) -> None:
        token = ShareToken(pool=InMemoryPool(initial_value=inflow))
        assert token.balance_of("alice") == 0
        assert token.balance_of("bob") == 0
