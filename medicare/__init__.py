"""
MediCare Hospital front desk backend.

Layout:
- config.py   : settings from environment variables (.env)
- db.py       : SQLAlchemy engine, pool and sessions
- models.py   : ORM models (patients, contact messages)
- errors.py   : error kinds and their HTTP status
- uploads.py  : profile picture intake
- mailer.py   : registration confirmation email
- services.py : domain logic (registration, patient directory, contact form)
- api_main.py : FastAPI app, static pages, uvicorn entry point
- cli.py      : admin commands
"""
