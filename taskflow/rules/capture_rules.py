from taskflow.rules.types import CaptureStatus


def parse_capture_batch(raw_input: str) -> list[str]:
    """One non-blank line = one capture item, surrounding whitespace stripped."""
    if not raw_input:
        return []
    return [line.strip() for line in raw_input.split("\n") if line.strip()]


def can_delete_capture_item(status: str) -> bool:
    return status in (CaptureStatus.UNPROCESSED, CaptureStatus.PARKED)


def can_park_capture_item(status: str) -> bool:
    return status == CaptureStatus.UNPROCESSED


def can_process_capture_item(status: str) -> bool:
    return status in (CaptureStatus.UNPROCESSED, CaptureStatus.PARKED)
