"""Shell snippets embedded in the generated ``run`` wrappers."""

from __future__ import annotations

SED_STRIP_ANSI_CODES = r"sed 's/\x1b\[[0-9;]*m//g'"


def _double_quoted(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("$", "\\$")
    escaped = escaped.replace("`", "\\`")
    return f'"{escaped}"'


def awk_indent_lines(indent: str) -> str:
    return f"awk -v indent={_double_quoted(indent)} '{{print indent $0}}'"


def awk_chop_lines(width: int) -> str:
    return f"awk -v width={width} '{{print substr($0, 1, width)}}'"


def notify_send_critical(subject: str, body: str) -> str:
    return f"notify-send -u critical {subject} {body}"


def tail_log(file: str, lines: int, indent: str, width_limit: int) -> str:
    """Last ``lines`` of ``file``, ANSI colors stripped, indented and width-limited."""
    return " | ".join(
        [
            f"tail -n {lines} {file}",
            SED_STRIP_ANSI_CODES,
            awk_indent_lines(indent),
            awk_chop_lines(width_limit),
        ]
    )
