"""Command-line client for the plushie registry."""

from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Awaitable, Callable, Iterable, Sequence

from plushie_registry.config.settings import Settings, get_settings
from plushie_registry.errors import ErrorCode, RegistryError
from plushie_registry.gateway.factory import build_gateway
from plushie_registry.gateway.models import Plushie, PlushieDraft
from plushie_registry.i18n.messages import translate
from plushie_registry.imgproc.blob import ImageBlob
from plushie_registry.imgproc.normalize import ImageNormalizer
from plushie_registry.integrations.checks import IntegrationCheckResult, run_all_checks
from plushie_registry.monitoring.logging import configure_logging
from plushie_registry.services.inventory import InventoryService
from plushie_registry.storage.session_file import SessionFile

logger = logging.getLogger(__name__)

Command = Callable[[InventoryService, argparse.Namespace], Awaitable[None]]


def _format_plushie(plushie: Plushie) -> str:
    adopted = plushie.adopted_at.isoformat() if plushie.adopted_at else "-"
    photo = "あり" if plushie.image_url else "なし"
    return f"{plushie.id}\t{plushie.name}\t{plushie.kind or '-'}\t{adopted}\t{photo}"


def _format_result(result: IntegrationCheckResult) -> str:
    status = "✅" if result.success else "❌"
    return f"{status} {result.name}: {result.message}"


def _read_password(args: argparse.Namespace) -> str:
    return args.password if args.password is not None else getpass.getpass("パスワード: ")


def print_results(results: Iterable[IntegrationCheckResult]) -> None:
    for result in results:
        print(_format_result(result))


def _load_image(path: str | None) -> ImageBlob | None:
    if not path:
        return None
    try:
        return ImageBlob.from_path(path)
    except OSError as exc:
        raise RegistryError(ErrorCode.FILE_UNREADABLE, str(exc)) from exc


def _read_text(path: str) -> str:
    try:
        return Path(path).expanduser().read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise RegistryError(ErrorCode.FILE_UNREADABLE, str(exc)) from exc


def _pick(value: object, default: object) -> object:
    return default if value is None else value


async def _cmd_register(service: InventoryService, args: argparse.Namespace) -> None:
    user = await service.register(args.email, _read_password(args))
    print(f"登録しました: {user.email} (id={user.id})")


async def _cmd_login(service: InventoryService, args: argparse.Namespace) -> None:
    user = await service.login(args.email, _read_password(args))
    print(f"ログインしました: {user.email}")


async def _cmd_logout(service: InventoryService, args: argparse.Namespace) -> None:
    await service.logout()
    print("ログアウトしました")


async def _cmd_whoami(service: InventoryService, args: argparse.Namespace) -> None:
    user = service.store.state.user
    print(f"{user.email} (id={user.id})" if user else "ログインしていません")


async def _cmd_list(service: InventoryService, args: argparse.Namespace) -> None:
    plushies = await service.refresh()
    if not plushies:
        print("まだ登録はありません。")
        return
    for plushie in plushies:
        print(_format_plushie(plushie))


async def _cmd_show(service: InventoryService, args: argparse.Namespace) -> None:
    plushie = await service.open(args.id)
    print(_format_plushie(plushie))
    if plushie.image_url:
        print(f"写真: {plushie.image_url}")
    if plushie.created_at:
        print(f"作成日: {plushie.created_at.date().isoformat()}")
    if plushie.conversation_history:
        print("会話履歴:")
        print(plushie.conversation_history)


async def _cmd_add(service: InventoryService, args: argparse.Namespace) -> None:
    draft = PlushieDraft(
        name=args.name,
        kind=args.kind,
        adopted_at=args.adopted,
        image=_load_image(args.image),
    )
    plushie_id = await service.save(draft)
    print(f"登録しました (id={plushie_id})")


async def _cmd_edit(service: InventoryService, args: argparse.Namespace) -> None:
    service.start_edit(await service.open(args.id))
    changes: dict[str, object] = {}
    if args.name is not None:
        changes["name"] = args.name
    if args.kind is not None:
        changes["kind"] = args.kind
    if args.adopted is not None:
        changes["adopted_at"] = args.adopted
    if args.image is not None:
        changes["image"] = _load_image(args.image)
    service.update_form(**changes)
    await service.submit_form()
    print("更新しました")


async def _cmd_delete(service: InventoryService, args: argparse.Namespace) -> None:
    await service.delete(args.id)
    print("削除しました")


async def _cmd_history(service: InventoryService, args: argparse.Namespace) -> None:
    if args.file:
        text = _read_text(args.file)
    else:
        text = args.text or ""
    await service.save_conversation(args.id, text)
    print("会話履歴を保存しました")


async def _cmd_talk(service: InventoryService, args: argparse.Namespace) -> None:
    plushie = await service.open(args.id)
    message = await service.talk(args.id)
    print(f"{plushie.name}: {message}")


COMMANDS: dict[str, Command] = {
    "register": _cmd_register,
    "login": _cmd_login,
    "logout": _cmd_logout,
    "whoami": _cmd_whoami,
    "list": _cmd_list,
    "show": _cmd_show,
    "add": _cmd_add,
    "edit": _cmd_edit,
    "delete": _cmd_delete,
    "history": _cmd_history,
    "talk": _cmd_talk,
}


async def run_command(settings: Settings, args: argparse.Namespace) -> None:
    """Run a gateway-backed command, restoring and persisting the session."""

    gateway = build_gateway(settings)
    session_file = SessionFile(settings.session_path)
    service = InventoryService(gateway, ImageNormalizer.from_settings(settings))
    try:
        stored = await session_file.load(gateway.name)
        if stored:
            gateway.restore_session(stored)
        if args.command not in ("register", "login"):
            await service.check_session()
        await COMMANDS[args.command](service, args)
        await session_file.save(gateway.export_session())
    finally:
        await gateway.close()


async def run_normalize(settings: Settings, args: argparse.Namespace) -> None:
    try:
        normalizer = ImageNormalizer(
            max_width=_pick(args.max_width, settings.image_max_width),
            max_height=_pick(args.max_height, settings.image_max_height),
            quality=_pick(args.quality, settings.image_quality),
        )
    except ValueError as exc:
        raise RegistryError(ErrorCode.INVALID_INPUT, str(exc)) from exc
    source = _load_image(args.source)
    result = await normalizer.normalize(source)
    if result is source:
        print(f"{args.source}: 変換不要 ({source.size} bytes)")
        return
    target = Path(args.output) if args.output else Path(args.source).with_suffix(".jpg")
    try:
        result.write_to(target)
    except OSError as exc:
        raise RegistryError(ErrorCode.FILE_UNREADABLE, str(exc)) from exc
    print(f"{args.source} -> {target} ({source.size} -> {result.size} bytes)")


async def run_checks(settings: Settings, args: argparse.Namespace) -> None:
    print_results(await run_all_checks())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="plushie-registry", description=__doc__)
    parser.add_argument("--log-level", default=None, help="override LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    for name in ("register", "login"):
        cmd = sub.add_parser(name)
        cmd.add_argument("email")
        cmd.add_argument("--password", default=None, help="prompted for when omitted")

    sub.add_parser("logout")
    sub.add_parser("whoami")
    sub.add_parser("list")

    for name in ("show", "delete", "talk"):
        sub.add_parser(name).add_argument("id")

    add = sub.add_parser("add")
    add.add_argument("name")
    add.add_argument("--kind", default="")
    add.add_argument("--adopted", type=date.fromisoformat, default=None, metavar="YYYY-MM-DD")
    add.add_argument("--image", default=None, metavar="PATH")

    edit = sub.add_parser("edit")
    edit.add_argument("id")
    edit.add_argument("--name", default=None)
    edit.add_argument("--kind", default=None)
    edit.add_argument("--adopted", type=date.fromisoformat, default=None, metavar="YYYY-MM-DD")
    edit.add_argument("--image", default=None, metavar="PATH")

    history = sub.add_parser("history")
    history.add_argument("id")
    source = history.add_mutually_exclusive_group(required=True)
    source.add_argument("--text")
    source.add_argument("--file", metavar="PATH")

    normalize = sub.add_parser("normalize")
    normalize.add_argument("source")
    normalize.add_argument("-o", "--output", default=None)
    normalize.add_argument("--max-width", type=int, default=None)
    normalize.add_argument("--max-height", type=int, default=None)
    normalize.add_argument("--quality", type=float, default=None)

    sub.add_parser("check")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    settings = get_settings()

    if args.command == "normalize":
        runner = run_normalize
    elif args.command == "check":
        runner = run_checks
    else:
        runner = run_command

    try:
        asyncio.run(runner(settings, args))
    except RegistryError as exc:
        logger.debug("Command %s failed", args.command, exc_info=exc)
        print(translate(exc), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
