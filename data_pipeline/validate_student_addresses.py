# =============================================================================
# VALIDATE STUDENT ADDRESSES
# =============================================================================
# - Enforce structural integrity of the raw student roster
# - Detect non-atomic columns that break first normal form
# - Flag addresses that do not follow the street;city;state;zip layout
# - Designed for deterministic execution in CI/CD pipelines


import os
import re
import sys
from typing import Any, Dict, List, Optional
import pandas as pd

from data_pipeline.pipeline_report import (
    exit_code,
    init_report,
    log_error,
    log_info,
    log_warning,
)


# ------------------------------------------------------------
# CONFIGURATIONS
# ------------------------------------------------------------

RAW_DATA_BASE_PATH = os.getenv('RAW_DATA_BASE_PATH', 'data/raw')
STRICT_ADDRESSES = os.getenv('STRICT_ADDRESSES', 'false').lower() == 'true'

STUDENT_TABLE = 'student'
STUDENT_PRIMARY_KEY = ['student_id']

ADDRESS_DELIMITER = ';'

# Every segment needs at least one non-space character
_STREET = r' *[0-9A-Za-z.][0-9A-Za-z. ]*'
_CITY = r' *[A-Za-z][A-Za-z ]*'
_STATE = r' *[A-Za-z][A-Za-z ]*'
_ZIP = r' *[0-9][0-9 ]*'

ADDRESS_PATTERN = re.compile(
    ADDRESS_DELIMITER.join([_STREET, _CITY, _STATE, _ZIP])
)


# ------------------------------------------------------------
# ADDRESS PATTERN
# ------------------------------------------------------------

def is_valid(raw: Any) -> bool:
    """
    True when `raw` is a four segment street;city;state;zip string.

    Never raises: missing or non-string values are simply invalid.
    """

    if not isinstance(raw, str):
        return False

    return ADDRESS_PATTERN.fullmatch(raw) is not None


def find_invalid_addresses(df: pd.DataFrame) -> pd.DataFrame:

    return df[~df['address'].map(is_valid)]


# ------------------------------------------------------------
# BASE VALIDATIONS
# ------------------------------------------------------------

def run_base_validations(df: pd.DataFrame,
                         table_name: str,
                         primary_key: List[str],
                         report: Dict[str, List[str]]
                         ) -> None:
    """
    Roster must be non-empty with unique column names and a usable key.

    A missing key column ends the checks early since the null and
    duplicate checks need it.
    """

    if df.empty:
        log_error(f'{table_name}: dataset is empty', report)

        return

    duplicate_columns = df.columns[df.columns.duplicated()].tolist()
    if duplicate_columns:
        log_error(
            f'{table_name}: duplicate column names detected: {duplicate_columns}',
            report
            )

    missing_pk_columns = [col for col in primary_key if col not in df.columns]
    if missing_pk_columns:
        log_error(
            f'{table_name}: missing primary key column(s): {missing_pk_columns}',
            report
            )

        return

    pk_null_count = df[primary_key].isnull().any(axis=1).sum()
    if pk_null_count > 0:
        log_error(
            f'{table_name}: {pk_null_count} row(s) with null primary key values',
            report
            )

    duplicate_pk_count = df.duplicated(subset=primary_key).sum()
    if duplicate_pk_count > 0:
        log_error(
            f'{table_name}: {duplicate_pk_count} duplicated primary key value(s)',
            report
            )


# ------------------------------------------------------------
# NORMALIZATION CHECKS
# ------------------------------------------------------------

def find_non_atomic_columns(df: pd.DataFrame,
                            delimiter: str = ADDRESS_DELIMITER
                            ) -> List[str]:
    """
    Text columns holding delimiter-separated composite values.
    """

    non_atomic = []

    for col in df.columns:
        if pd.api.types.is_numeric_dtype(df[col]):
            continue

        values = df[col].dropna().astype(str)
        if values.str.contains(delimiter, regex=False).any():
            non_atomic.append(col)

    return non_atomic


# ------------------------------------------------------------
# ADDRESS VALIDATIONS
# ------------------------------------------------------------

def run_address_validations(df: pd.DataFrame,
                            table_name: str,
                            report: Dict[str, List[str]],
                            strict: bool = STRICT_ADDRESSES
                            ) -> List[Any]:
    """
    Compare the address count with the count of well-formed addresses.

    Returns the student ids whose address must be corrected upstream.
    """

    if 'address' not in df.columns:
        log_error(f'{table_name}: missing required column `address`', report)

        return []

    address_count = int(df['address'].count())
    invalid_df = find_invalid_addresses(df)
    valid_count = len(df) - len(invalid_df)

    log_info(
        f'{table_name}: {valid_count} of {address_count} address(es) match the expected layout',
        report
        )

    if invalid_df.empty:
        return []

    if 'student_id' in invalid_df.columns:
        invalid_ids = invalid_df['student_id'].tolist()
    else:
        invalid_ids = invalid_df.index.tolist()

    message = (
        f'{table_name}: {len(invalid_ids)} malformed address(es) for student_id(s) {invalid_ids}'
        )

    if strict:
        log_error(message, report)
    else:
        log_warning(message, report)

    return invalid_ids


# ------------------------------------------------------------
# Input-Output Helpers
# ------------------------------------------------------------

def load_student_table(csv_path: str,
                       report: Dict[str, List[str]]
                       ) -> Optional[pd.DataFrame]:
    try:
        df = pd.read_csv(csv_path, dtype={'address': 'object'})
        log_info(f'Loaded {STUDENT_TABLE} file: {os.path.basename(csv_path)} ({len(df)} rows)', report)

        return df

    except Exception as e:
        log_error(f'Failed to load {STUDENT_TABLE} file {csv_path}: {e}', report)

        return None


# ------------------------------------------------------------
# MAIN EXECUTION
# ------------------------------------------------------------

def main() -> None:
    report = init_report()

    csv_path = os.path.join(RAW_DATA_BASE_PATH, f'{STUDENT_TABLE}.csv')

    if not os.path.exists(csv_path):
        log_error(f'Missing file: {csv_path}', report)

        sys.exit(exit_code(report))

    df = load_student_table(csv_path, report)
    if df is None:

        sys.exit(exit_code(report))

    run_base_validations(df, STUDENT_TABLE, STUDENT_PRIMARY_KEY, report)

    non_atomic = find_non_atomic_columns(df)
    if non_atomic:
        log_info(f'{STUDENT_TABLE}: non-atomic column(s) detected: {non_atomic}', report)

    run_address_validations(df, STUDENT_TABLE, report)

    sys.exit(exit_code(report))


if __name__ == '__main__':
    main()


# =============================================================================
# END OF SCRIPT
# =============================================================================
