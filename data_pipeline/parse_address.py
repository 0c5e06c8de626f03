# =============================================================================
# PARSE STUDENT ADDRESSES
# =============================================================================
# - Split composite street;city;state;zip strings into atomic fields
# - Refuse partial results: an address splits into four fields or not at all
# - Display the roster with its address decomposed column by column


import os
import sys
from typing import Any, NamedTuple, Optional
import pandas as pd

from data_pipeline.pipeline_report import exit_code, init_report, log_error, log_info, log_warning
from data_pipeline.validate_student_addresses import (
    ADDRESS_DELIMITER,
    RAW_DATA_BASE_PATH,
    STUDENT_TABLE,
    load_student_table,
)


# ------------------------------------------------------------
# CONFIGURATIONS
# ------------------------------------------------------------

ADDRESS_FIELDS = ['street', 'city', 'state', 'zip']


class MalformedAddress(ValueError):
    """Address does not split into four non-empty segments."""


class ParsedAddress(NamedTuple):
    street: str
    city: str
    state: str
    zip: str


# ------------------------------------------------------------
# SINGLE ADDRESS
# ------------------------------------------------------------

def parse(raw: Any, delimiter: str = ADDRESS_DELIMITER) -> ParsedAddress:
    """
    Split `raw` into street, city, state and zip.

    Each segment is stripped of surrounding whitespace. Raises
    MalformedAddress when the segment count is not four or a segment
    is blank.
    """

    if not isinstance(raw, str):
        raise MalformedAddress(f'expected a string address, got {type(raw).__name__}')

    segments = raw.split(delimiter)
    if len(segments) != len(ADDRESS_FIELDS):
        raise MalformedAddress(
            f'expected {len(ADDRESS_FIELDS)} segments, found {len(segments)} in {raw!r}'
            )

    fields = [segment.strip() for segment in segments]

    blank_fields = [name for name, value in zip(ADDRESS_FIELDS, fields) if not value]
    if blank_fields:
        raise MalformedAddress(f'blank segment(s) {blank_fields} in {raw!r}')

    return ParsedAddress(*fields)


def parse_or_none(raw: Any) -> Optional[ParsedAddress]:
    try:
        return parse(raw)

    except MalformedAddress:
        return None


# ------------------------------------------------------------
# WHOLE ROSTER
# ------------------------------------------------------------

def split_address_column(df: pd.DataFrame, column: str = 'address') -> pd.DataFrame:
    """
    Return a copy of `df` with one column per address field.

    Rows whose address cannot be parsed get missing values in all four
    fields.
    """

    parsed = df[column].map(parse_or_none)

    out = df.copy()
    for position, field in enumerate(ADDRESS_FIELDS):
        out[field] = parsed.map(
            lambda address, position=position: address[position] if address is not None else None
            )

    return out


# ------------------------------------------------------------
# MAIN EXECUTION
# ------------------------------------------------------------

def main() -> None:
    report = init_report()

    csv_path = os.path.join(RAW_DATA_BASE_PATH, f'{STUDENT_TABLE}.csv')

    df = load_student_table(csv_path, report)
    if df is None:

        sys.exit(exit_code(report))

    if 'address' not in df.columns:
        log_error(f'{STUDENT_TABLE}: missing required column `address`', report)

        sys.exit(exit_code(report))

    split_df = split_address_column(df)

    unparsed = split_df['street'].isna().sum()
    if unparsed > 0:
        log_warning(f'{STUDENT_TABLE}: {unparsed} address(es) could not be split', report)

    display_columns = [c for c in ['student_id'] if c in split_df.columns] + ADDRESS_FIELDS
    print(split_df[display_columns].to_string(index=False))

    log_info(f'{STUDENT_TABLE}: split {len(split_df) - unparsed} address(es) into atomic fields', report)

    sys.exit(exit_code(report))


if __name__ == '__main__':
    main()


# =============================================================================
# END OF SCRIPT
# =============================================================================
