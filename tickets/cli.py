"""
Console client for the tickets API.

Creates and deletes appointments, generates invitations (saving their QR codes
as PNG files) and asks the server to email invitations to a list of people.
"""
import argparse
import sys
import uuid
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

import httpx

from .core.config import settings
from .services import qr

FORMATS = {
    "0": "ONLINE",
    "online": "ONLINE",
    "1": "OFFLINE",
    "offline": "OFFLINE",
}


def read_non_empty(prompt: str, reader: Callable[[str], str] = input) -> str:
    while True:
        value = reader(prompt).strip()
        if value:
            return value
        print("Input cannot be empty.")


def read_format(reader: Callable[[str], str] = input) -> str:
    while True:
        value = reader("Format [0 | online] - ONLINE, [1 | offline] - OFFLINE: ").strip().lower()
        if value in FORMATS:
            return FORMATS[value]
        print("Invalid format. Please enter either `online` or `offline`.")


def read_emails(reader: Callable[[str], str] = input) -> List[str]:
    """Read one email per line until an empty line."""
    print("Enter emails, one per line, finish with an empty line:")
    emails = []
    while True:
        value = reader("> ").strip()
        if not value:
            return emails
        emails.append(value)


def build_appointment(args: argparse.Namespace, reader: Callable[[str], str] = input) -> dict:
    """Appointment payload from the command line, prompting for anything missing."""
    title = args.title or read_non_empty("Title: ", reader)
    description = args.description or read_non_empty("Description: ", reader)
    appointment_format = FORMATS.get((args.format or "").lower()) or read_format(reader)

    address = link = None
    if appointment_format == "OFFLINE":
        address = args.address or read_non_empty("Address: ", reader)
    else:
        link = args.link or read_non_empty("Meeting link: ", reader)

    date = args.date or read_non_empty("Date (YYYY-MM-DDTHH:MM:SS): ", reader)
    datetime.fromisoformat(date)  # raises ValueError before anything is sent
    duration = args.duration if args.duration is not None else int(read_non_empty("Duration (seconds): ", reader))

    return {
        "title": title,
        "description": description,
        "format": appointment_format,
        "address": address,
        "link": link,
        "date": date,
        "duration": duration,
    }


def create_appointment(client: httpx.Client, web_url: str, payload: dict) -> str:
    response = client.post(f"{web_url}/api/appointment", json=payload)
    response.raise_for_status()
    return response.json()


def delete_appointments(client: httpx.Client, web_url: str, ids: Sequence[uuid.UUID]) -> Dict[uuid.UUID, bool]:
    results = {}
    for appointment_id in sorted(set(ids)):
        response = client.delete(f"{web_url}/api/appointment/{appointment_id}")
        response.raise_for_status()
        results[appointment_id] = bool(response.json())
    return results


def fetch_invitations(
    client: httpx.Client,
    web_url: str,
    appointment_id: uuid.UUID,
    count: Optional[int] = None,
    emails: Optional[List[str]] = None,
) -> List[dict]:
    params = {"count": count} if count is not None else None
    response = client.post(
        f"{web_url}/api/appointment/{appointment_id}/invitation",
        params=params,
        json={"email": emails},
    )
    response.raise_for_status()
    return response.json()


def save_qr_codes(invitations: List[dict], base_path: str) -> List[Path]:
    """Write one PNG per invitation under ``base_path/<appointment_id>/``."""
    paths = []
    for invitation in invitations:
        directory = Path(base_path) / str(invitation["appointment_id"])
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{invitation['id']}.png"
        path.write_bytes(qr.encode(invitation["short_url"], box_size=settings.QR_BOX_SIZE, border=settings.QR_BORDER))
        paths.append(path)
    return paths


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tickets", description="Manage appointments and invitations")
    parser.add_argument("--web-url", default=settings.WEB_URL, help="Base URL of the tickets API")
    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create", help="Create an appointment")
    create.add_argument("--title")
    create.add_argument("--description")
    create.add_argument("--format", choices=sorted(FORMATS))
    create.add_argument("--address")
    create.add_argument("--link")
    create.add_argument("--date", help="ISO timestamp, UTC")
    create.add_argument("--duration", type=int, help="Seconds")

    delete = subparsers.add_parser("delete", help="Delete appointments")
    delete.add_argument("-u", "--uuids", type=uuid.UUID, nargs="+", required=True)

    generate = subparsers.add_parser("generate", help="Generate invitations and save their QR codes")
    generate.add_argument("-a", "--appt-id", type=uuid.UUID, required=True)
    generate.add_argument("-c", "--count", type=int, default=1)
    generate.add_argument("-o", "--output", default=settings.QR_IMAGE_PATH, help="QR image directory")

    send = subparsers.add_parser("send", help="Email invitations to a list of people")
    send.add_argument("-a", "--appt-id", type=uuid.UUID, required=True)
    send.add_argument("-e", "--email", nargs="+", help="Read from the prompt when omitted")

    return parser


def run(args: argparse.Namespace, client: httpx.Client, reader: Callable[[str], str] = input) -> str:
    web_url = args.web_url.rstrip("/")

    if args.command == "create":
        appointment_id = create_appointment(client, web_url, build_appointment(args, reader))
        return f"Created appointment {appointment_id}"

    if args.command == "delete":
        results = delete_appointments(client, web_url, args.uuids)
        return "\n".join(f"{appointment_id}: {'deleted' if deleted else 'not found'}"
                         for appointment_id, deleted in results.items())

    if args.command == "generate":
        invitations = fetch_invitations(client, web_url, args.appt_id, count=args.count)
        paths = save_qr_codes(invitations, args.output)
        return "Generated to:\n" + "\n".join(str(path) for path in paths)

    if args.command == "send":
        emails = sorted({email.strip() for email in (args.email or read_emails(reader)) if email.strip()})
        if not emails:
            raise ValueError("At least one email is required")
        invitations = fetch_invitations(client, web_url, args.appt_id, emails=emails)
        return f"Generated {len(invitations)} invitations for {', '.join(emails)}"

    raise ValueError(f"Unknown command {args.command}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    with httpx.Client(timeout=30) as client:
        try:
            print(run(args, client))
        except httpx.HTTPStatusError as e:
            print(f"Error: server answered {e.response.status_code}: {e.response.text}", file=sys.stderr)
            return 1
        except (httpx.HTTPError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
