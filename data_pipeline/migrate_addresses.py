# =============================================================================
# MIGRATE STUDENT ADDRESSES
# =============================================================================
# - Move composite student addresses into a normalized address table
# - Validate before parsing: malformed addresses are skipped, never half-written
# - Link every address row back to its student through student_id
# - Re-runs are idempotent: students already migrated are not inserted again


import os
import sys
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Set
import pandas as pd

from data_pipeline.parse_address import ADDRESS_FIELDS, MalformedAddress, ParsedAddress, parse
from data_pipeline.pipeline_report import exit_code, init_report, log_error, log_info, log_warning
from data_pipeline.validate_student_addresses import RAW_DATA_BASE_PATH, STUDENT_TABLE, is_valid


# ------------------------------------------------------------
# CONFIGURATIONS
# ------------------------------------------------------------

NORMALIZED_DATA_PATH = os.getenv('NORMALIZED_DATA_PATH', 'data/normalized')

ADDRESS_TABLE = 'address'
ADDRESS_COLUMNS = ['id'] + ADDRESS_FIELDS + ['student_id']

# VARCHAR widths of the address table
COLUMN_WIDTHS = {
    'street': 255,
    'city': 255,
    'state': 2,
    'zip': 10,
}

REQUIRED_STUDENT_COLUMNS = ['student_id', 'address']


# ------------------------------------------------------------
# ERRORS & RECORDS
# ------------------------------------------------------------

class SourceReadError(Exception):
    """Student roster cannot be read."""


class SinkWriteError(Exception):
    """Address table rejected a write."""


class StudentRecord(NamedTuple):
    student_id: Any
    address: Any
    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    grade: Any = None
    curriculum: Optional[str] = None
    email_id: Optional[str] = None


class AddressRecord(NamedTuple):
    id: int
    street: str
    city: str
    state: str
    zip: str
    student_id: Any


class MigrationResult(NamedTuple):
    inserted: int
    skipped: List[Any]
    already_migrated: List[Any]
    failed: List[Any]

    @property
    def processed(self) -> int:
        return self.inserted + len(self.skipped) + len(self.failed)


# ------------------------------------------------------------
# ADDRESS STORE
# ------------------------------------------------------------

class AddressStore:
    """
    Append-only address table.

    Hands out surrogate ids in insertion order and enforces the
    NOT NULL and width constraints of each column.
    """

    def __init__(self, records: Iterable[AddressRecord] = ()):
        self._records: List[AddressRecord] = []
        self._student_ids: Set[Any] = set()
        self._next_id = 1

        for record in records:
            self._records.append(record)
            self._student_ids.add(record.student_id)
            self._next_id = max(self._next_id, record.id + 1)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(self._records)

    def has_student(self, student_id: Any) -> bool:
        return student_id in self._student_ids

    def migrated_student_ids(self) -> Set[Any]:
        return set(self._student_ids)

    def insert(self, address: ParsedAddress, student_id: Any) -> AddressRecord:
        for field in ADDRESS_FIELDS:
            value = getattr(address, field)

            if not value:
                raise SinkWriteError(
                    f'student_id {student_id}: `{field}` cannot be empty'
                    )

            if len(value) > COLUMN_WIDTHS[field]:
                raise SinkWriteError(
                    f'student_id {student_id}: `{field}` value {value!r} exceeds '
                    f'{COLUMN_WIDTHS[field]} characters'
                    )

        record = AddressRecord(self._next_id, *address, student_id)
        self._records.append(record)
        self._student_ids.add(student_id)
        self._next_id += 1

        return record

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self._records, columns=ADDRESS_COLUMNS)


# ------------------------------------------------------------
# MIGRATION
# ------------------------------------------------------------

def migrate(students: Iterable[StudentRecord],
            store: AddressStore,
            report: Optional[Dict[str, List[str]]] = None
            ) -> MigrationResult:
    """
    Insert one address row per student with a well-formed address.

    Malformed addresses are skipped. Rows the store rejects are logged
    and listed as failed. Neither stops the batch.
    """

    if report is None:
        report = init_report()

    inserted = 0
    skipped = []
    already_migrated = []
    failed = []

    for student in students:
        if store.has_student(student.student_id):
            already_migrated.append(student.student_id)

            continue

        if not is_valid(student.address):
            skipped.append(student.student_id)

            continue

        try:
            address = parse(student.address)

        except MalformedAddress as e:
            log_error(
                f'student_id {student.student_id}: address passed validation but failed to parse: {e}',
                report
                )
            skipped.append(student.student_id)

            continue

        try:
            store.insert(address, student.student_id)

        except SinkWriteError as e:
            log_error(f'{ADDRESS_TABLE}: write rejected: {e}', report)
            failed.append(student.student_id)

            continue

        inserted += 1

    log_info(
        f'{ADDRESS_TABLE}: inserted {inserted}, skipped {len(skipped)}, '
        f'failed {len(failed)}, already migrated {len(already_migrated)}',
        report
        )

    if skipped:
        log_warning(
            f'{ADDRESS_TABLE}: malformed address(es) skipped for student_id(s) {skipped}',
            report
            )

    if failed:
        log_error(
            f'{ADDRESS_TABLE}: rejected write(s) for student_id(s) {failed}',
            report
            )

    return MigrationResult(inserted, skipped, already_migrated, failed)


def join_students_addresses(students_df: pd.DataFrame,
                            addresses_df: pd.DataFrame
                            ) -> pd.DataFrame:
    """
    Student rows paired with their normalized address rows.
    """

    return students_df.merge(addresses_df, on='student_id', how='inner')


# ------------------------------------------------------------
# Input-Output Helpers
# ------------------------------------------------------------

def load_student_frame(csv_path: str) -> pd.DataFrame:
    if not os.path.exists(csv_path):
        raise SourceReadError(f'Missing file: {csv_path}')

    try:
        df = pd.read_csv(csv_path, dtype={'address': 'object'})

    except Exception as e:
        raise SourceReadError(f'Failed to load {STUDENT_TABLE} file {csv_path}: {e}') from e

    missing_columns = [c for c in REQUIRED_STUDENT_COLUMNS if c not in df.columns]
    if missing_columns:
        raise SourceReadError(f'{STUDENT_TABLE}: missing required column(s): {missing_columns}')

    return df


def students_from_frame(df: pd.DataFrame) -> List[StudentRecord]:

    return [
        StudentRecord(**{field: row.get(field) for field in StudentRecord._fields})
        for row in df.to_dict('records')
    ]


def load_address_store(csv_path: str) -> AddressStore:
    """
    Address table written by a previous run, or an empty one.
    """

    if not os.path.exists(csv_path):
        return AddressStore()

    try:
        df = pd.read_csv(csv_path, dtype={field: 'object' for field in ADDRESS_FIELDS})

    except Exception as e:
        raise SinkWriteError(f'Failed to load {ADDRESS_TABLE} file {csv_path}: {e}') from e

    missing_columns = [c for c in ADDRESS_COLUMNS if c not in df.columns]
    if missing_columns:
        raise SinkWriteError(f'{ADDRESS_TABLE}: missing column(s): {missing_columns}')

    records = [
        AddressRecord(**{column: row[column] for column in ADDRESS_COLUMNS})
        for row in df.to_dict('records')
    ]

    return AddressStore(records)


def write_address_store(store: AddressStore, csv_path: str) -> None:
    try:
        os.makedirs(os.path.dirname(csv_path) or '.', exist_ok=True)
        store.to_frame().to_csv(csv_path, index=False)

    except OSError as e:
        raise SinkWriteError(f'Failed to write {ADDRESS_TABLE} file {csv_path}: {e}') from e


# ------------------------------------------------------------
# MAIN EXECUTION
# ------------------------------------------------------------

def main() -> None:
    report = init_report()

    students_path = os.path.join(RAW_DATA_BASE_PATH, f'{STUDENT_TABLE}.csv')
    address_path = os.path.join(NORMALIZED_DATA_PATH, f'{ADDRESS_TABLE}.csv')

    try:
        students_df = load_student_frame(students_path)
        store = load_address_store(address_path)

    except (SourceReadError, SinkWriteError) as e:
        log_error(str(e), report)

        sys.exit(exit_code(report))

    log_info(f'Loaded {len(students_df)} student(s) and {len(store)} existing address row(s)', report)

    migrate(students_from_frame(students_df), store, report)

    try:
        write_address_store(store, address_path)
        log_info(f'Wrote {len(store)} address row(s) to {address_path}', report)

    except SinkWriteError as e:
        log_error(str(e), report)

        sys.exit(exit_code(report))

    joined = join_students_addresses(students_df, store.to_frame())
    log_info(f'{len(joined)} of {len(students_df)} student(s) linked to an address', report)

    sys.exit(exit_code(report))


if __name__ == '__main__':
    main()


# =============================================================================
# END OF SCRIPT
# =============================================================================
