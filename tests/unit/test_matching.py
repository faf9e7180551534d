"""Unit tests for reconciliation similarity scoring"""

import uuid
import pytest
from datetime import date
from decimal import Decimal
from payables_gateway.domain.matching import name_score, rank_candidates, similarity_score, value_score
from payables_gateway.domain.models import BankTransaction, Installment, InstallmentStatus


def make_installment(counterparty: str, amount: str | None) -> Installment:
    return Installment(
        id=uuid.uuid4(),
        description="Teste",
        counterparty=counterparty,
        amount=Decimal(amount) if amount is not None else None,
        due_date=date(2024, 1, 5),
        status=InstallmentStatus.OPEN,
        entity_id="entity-1",
    )


def make_transaction(description: str, value: str) -> BankTransaction:
    return BankTransaction(date=date(2024, 1, 5), description=description, value=Decimal(value))


def test_exact_value_and_name_scores_one():
    score = similarity_score(
        Decimal("1500.00"), "PAGAMENTO FORNECEDOR ABC LTDA", Decimal("1500.00"), "Fornecedor ABC Ltda"
    )
    assert score == pytest.approx(1.0)


def test_value_score_is_linear_and_floored():
    assert value_score(Decimal("90"), Decimal("100")) == pytest.approx(0.9)
    assert value_score(Decimal("110"), Decimal("100")) == pytest.approx(0.9)
    assert value_score(Decimal("250"), Decimal("100")) == 0.0
    assert value_score(Decimal("100"), None) == 0.0


def test_name_score_ignores_short_tokens():
    # "abc" has 3 chars and doesn't count; "fornecedor" found, "ltda" missing
    assert name_score("PAGTO FORNECEDOR ABC", "Fornecedor ABC Ltda") == pytest.approx(0.5)
    assert name_score("QUALQUER COISA", "ABC S/A") == 0.0


def test_dissimilar_pair_is_excluded():
    txn = make_transaction("TARIFA BANCARIA", "5000.00")
    inst = make_installment("Imobiliária Central", "100.00")

    assert similarity_score(txn.value, txn.description, inst.amount, inst.counterparty) <= 0.3
    assert rank_candidates([txn], [inst]) == []


@pytest.mark.parametrize(
    "txn_value,description,inst_value,counterparty",
    [
        ("0.01", "", "99999.99", "x"),
        ("1000000", "abc", "0.01", "Empresa Grande Nacional"),
        ("100", "EMPRESA GRANDE NACIONAL", "100", "Empresa Grande Nacional"),
        ("50", "ENERGIA", "100", "Companhia Energia"),
    ],
)
def test_score_is_bounded(txn_value, description, inst_value, counterparty):
    score = similarity_score(Decimal(txn_value), description, Decimal(inst_value), counterparty)
    assert 0.0 <= score <= 1.0


def test_rank_candidates_orders_by_score():
    abc = make_installment("Fornecedor ABC Ltda", "1500.00")
    energia = make_installment("Companhia Energia Elétrica", "320.55")
    txns = [
        make_transaction("PIX ENERGIA", "320.55"),
        make_transaction("PAGAMENTO FORNECEDOR ABC LTDA", "1500.00"),
    ]

    candidates = rank_candidates(txns, [abc, energia])

    assert candidates[0].installment is abc
    assert candidates[0].score == pytest.approx(1.0)
    assert candidates[1].installment is energia
    assert all(a.score >= b.score for a, b in zip(candidates, candidates[1:]))


def test_rank_candidates_ties_keep_encounter_order():
    first = make_installment("Alpha Servicos", "100.00")
    second = make_installment("Bravo Servicos", "100.00")
    txn = make_transaction("DEBITO AUTOMATICO", "100.00")

    candidates = rank_candidates([txn], [first, second])

    assert [c.installment for c in candidates] == [first, second]
    assert candidates[0].score == candidates[1].score == pytest.approx(0.6)


def test_variable_installment_matches_on_name_only():
    inst = make_installment("Companhia Saneamento", None)
    txn = make_transaction("COMPANHIA SANEAMENTO BASICO", "87.10")

    candidates = rank_candidates([txn], [inst])

    assert len(candidates) == 1
    assert candidates[0].score == pytest.approx(0.4)
