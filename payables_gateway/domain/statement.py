"""Bank statement CSV parsing"""

import re
from decimal import Decimal, InvalidOperation
from typing import List

from payables_gateway.domain.exceptions import ParseError, ValidationError
from payables_gateway.domain.models import BankTransaction
from payables_gateway.utils.date_utils import parse_date

NON_NUMERIC = re.compile(r"[^\d.-]")


def parse_statement(content: str) -> List[BankTransaction]:
    """
    Parse statement text into debit transactions.

    Expected layout: a header line followed by `date,description,value,type`
    rows. Quotes are stripped from every field. Only rows with a negative
    value (debits) are kept, with the value stored as its absolute amount.
    Short rows and rows whose value is not numeric are skipped.

    Raises:
        ParseError: No data row after the header, or a debit row with an unreadable date
        ValidationError: Data rows exist but none of them is a debit
    """
    lines = [line for line in content.splitlines() if line.strip()]
    if len(lines) < 2:
        raise ParseError("O extrato não contém transações após o cabeçalho")

    transactions = []
    for line_number, line in enumerate(lines[1:], start=2):
        columns = [column.strip().replace('"', "") for column in line.split(",")]
        if len(columns) < 4:
            continue

        try:
            value = Decimal(NON_NUMERIC.sub("", columns[2]))
        except InvalidOperation:
            continue

        if value >= 0:
            continue

        try:
            txn_date = parse_date(columns[0])
        except ValueError as e:
            raise ParseError(f"Data inválida na linha {line_number}: {columns[0]!r}") from e

        transactions.append(
            BankTransaction(date=txn_date, description=columns[1], value=abs(value))
        )

    if not transactions:
        raise ValidationError(
            "Nenhuma transação de débito encontrada no arquivo", title="Arquivo inválido"
        )

    return transactions
