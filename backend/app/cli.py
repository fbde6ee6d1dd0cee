"""Operator commands.

  aicollector serve --host 0.0.0.0 --port 8080
  aicollector create-admin <adminId> <password> <name> [email]
"""
import argparse, asyncio
import uvicorn
from app.db.database import SessionLocal, init_db
from app.services import admin_service

async def _create_admin(args):
    await init_db()
    async with SessionLocal() as db:
        admin = await admin_service.create_admin(db, args.admin_id, args.password, args.name, args.email)
        print(f"created admin {admin.admin_id} (#{admin.admin_no})")

def _serve(args):
    uvicorn.run('app.main:app', host=args.host, port=args.port, reload=args.reload, log_level=args.log_level)

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="aicollector")
    sub = parser.add_subparsers(dest="command", required=True)
    s = sub.add_parser("serve", help="run the HTTP API")
    s.add_argument("--host", default="127.0.0.1")
    s.add_argument("--port", type=int, default=8080)
    s.add_argument("--reload", action="store_true")
    s.add_argument("--log-level", default="info")
    p = sub.add_parser("create-admin")
    p.add_argument("admin_id")
    p.add_argument("password")
    p.add_argument("name")
    p.add_argument("email", nargs="?")
    return parser

def main(argv=None):
    args = build_parser().parse_args(argv)
    if args.command == "serve":
        _serve(args)
    elif args.command == "create-admin":
        asyncio.run(_create_admin(args))

if __name__ == "__main__":
    main()
