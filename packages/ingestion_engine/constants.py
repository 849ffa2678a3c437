"""Fixed configuration of the supported ledger layout."""

from dataclasses import dataclass

# Number of row error messages echoed back in an ingestion summary
ERROR_SAMPLE_LIMIT = 10

# Spreadsheet serial day count of 1970-01-01
SERIAL_DATE_UNIX_EPOCH = 25569


@dataclass(frozen=True)
class LedgerLayout:
    """Sheet name, column labels and entry extension of a household ledger export."""

    sheet_name: str = "가계부 내역"
    date_column: str = "날짜"
    category_column: str = "분류"
    content_column: str = "내용"
    payment_method_column: str = "결제수단"
    amount_column: str = "금액"
    memo_column: str = "메모"
    extension: str = ".xlsx"

    @property
    def required_columns(self) -> tuple[str, ...]:
        return (
            self.date_column,
            self.category_column,
            self.content_column,
            self.payment_method_column,
            self.amount_column,
        )


DEFAULT_LAYOUT = LedgerLayout()
