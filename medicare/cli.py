from __future__ import annotations

import argparse

from sqlalchemy.exc import SQLAlchemyError

from medicare.config import Settings, configure_logging, load_settings
from medicare.db import build_engine, build_session_factory, db_session, init_db
from medicare.errors import FrontDeskError
from medicare.mailer import SmtpMailer
from medicare.services import (
    delete_patient,
    list_contact_messages,
    list_patients,
    register_patient,
)


def _session_factory(settings: Settings):
    engine = build_engine(settings.database_url)
    init_db(engine)  # makes sure the tables exist
    return build_session_factory(engine)


def cmd_init(args: argparse.Namespace, settings: Settings) -> None:
    _session_factory(settings)
    print("Tables patients and contact_messages ready.")


def cmd_serve(args: argparse.Namespace, settings: Settings) -> None:
    from medicare.api_main import main as serve

    serve()


def cmd_list(args: argparse.Namespace, settings: Settings) -> None:
    with db_session(_session_factory(settings)) as s:
        if args.entity == "patients":
            for p in list_patients(s):
                print(f"{p['id']} | {p['name']} | {p['email']} | {p['phone']} | {p['profile_picture'] or '-'}")
        elif args.entity == "contacts":
            for m in list_contact_messages(s):
                print(f"{m['id']} | {m['created_at']} | {m['name']} <{m['email']}> | {m['message']}")


def cmd_add_patient(args: argparse.Namespace, settings: Settings) -> None:
    with db_session(_session_factory(settings)) as s:
        outcome = register_patient(s, SmtpMailer.from_settings(settings), args.name, args.email, args.phone)
    print(f"Patient created: {outcome.id} (email sent: {'yes' if outcome.email_sent else 'no'})")


def cmd_delete_patient(args: argparse.Namespace, settings: Settings) -> None:
    with db_session(_session_factory(settings)) as s:
        delete_patient(s, args.patient_id)
    print(f"Patient {args.patient_id} deleted.")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="medicare", description="MediCare Hospital front desk admin")
    sub = p.add_subparsers(required=True)

    p_init = sub.add_parser("init", help="Create the database tables")
    p_init.set_defaults(func=cmd_init)

    p_serve = sub.add_parser("serve", help="Run the HTTP server (PORT, default 3000)")
    p_serve.set_defaults(func=cmd_serve)

    p_list = sub.add_parser("list", help="List records")
    p_list.add_argument("entity", choices=["patients", "contacts"])
    p_list.set_defaults(func=cmd_list)

    p_addp = sub.add_parser("add-patient", help="Register a patient (sends the confirmation email)")
    p_addp.add_argument("--name", required=True)
    p_addp.add_argument("--email", required=True)
    p_addp.add_argument("--phone", required=True)
    p_addp.set_defaults(func=cmd_add_patient)

    p_del = sub.add_parser("delete-patient", help="Delete a patient")
    p_del.add_argument("patient_id")
    p_del.set_defaults(func=cmd_delete_patient)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = load_settings()
    configure_logging(settings.log_level)
    try:
        args.func(args, settings)
    except FrontDeskError as e:
        print(f"Error: {e.message}")
        return 1
    except SQLAlchemyError as e:
        print(f"Database error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
