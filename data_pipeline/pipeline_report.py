# =============================================================================
# PIPELINE RUN REPORT
# =============================================================================
# - Collect errors, warnings and info messages raised by a pipeline step
# - Echo every message to the console with its level
# - Shared by validation, parsing and migration steps


from typing import Dict, List


def init_report() -> Dict[str, List[str]]:
    """Empty run report, one message list per level."""

    return {
        'errors': [],
        'warnings': [],
        'info': []
    }


def log_info(message: str, report: Dict[str, List[str]]) -> None:
    print(f'[INFO] {message}')
    report['info'].append(message)


def log_warning(message: str, report: Dict[str, List[str]]) -> None:
    print(f'[WARNING] {message}')
    report['warnings'].append(message)


def log_error(message: str, report: Dict[str, List[str]]) -> None:
    print(f'[ERROR] {message}')
    report['errors'].append(message)


def exit_code(report: Dict[str, List[str]]) -> int:
    """
    Non-zero when the step logged any error.
    """

    return 1 if report['errors'] else 0


# =============================================================================
# END OF SCRIPT
# =============================================================================
