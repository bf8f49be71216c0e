# src/beanstalk_core/main.py
"""
beanstalk-core 命令行工具。

配置来源优先级: --config 指定的 TOML > 环境变量 (BEANSTALK_*，会先加载 .env) > 默认值。
命令结果以 JSON 输出到 stdout；协议级失败时打印 LastError 并以 1 退出。
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .config import BeanstalkConfig, load_config_from_env, load_config_from_toml
from .core import BeanstalkClient
from .exceptions import BeanstalkError, ConfigError
from .protocols import Job

logger = logging.getLogger("BeanstalkCLI")


def load_cli_config(args: argparse.Namespace) -> BeanstalkConfig:
    """
    为 CLI 工具加载配置。
    """
    if args.config:
        config = load_config_from_toml(Path(args.config), args.profile)
    else:
        env_path = Path.cwd() / ".env"
        if env_path.exists():
            load_dotenv(dotenv_path=env_path, override=True)
            logger.debug(f"已加载配置文件: {env_path}")
        try:
            config = load_config_from_env()
        except ConfigError:
            logger.debug("未检测到环境变量配置，使用默认值")
            config = BeanstalkConfig()

    if args.host:
        config = replace(config, host=args.host)
    if args.port:
        config = replace(config, port=args.port)
    return config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="beanstalk-core", description="beanstalkd 命令行客户端"
    )
    parser.add_argument("--config", "-c", default=None, help="TOML 配置文件路径")
    parser.add_argument("--profile", default="default", help="TOML 配置预设名")
    parser.add_argument("--host", default=None, help="服务器地址")
    parser.add_argument("--port", "-p", type=int, default=None, help="服务器端口")
    parser.add_argument("--debug", "-d", action="store_true", help="启用调试日志")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("stats", help="服务器统计信息")
    sub.add_parser("list-tubes", help="列出所有管道")

    p = sub.add_parser("stats-tube", help="管道统计信息")
    p.add_argument("tube")

    p = sub.add_parser("stats-job", help="任务统计信息")
    p.add_argument("id", type=int)

    p = sub.add_parser("put", help="投递任务")
    p.add_argument("body")
    p.add_argument("--tube", "-t", default=None, help="目标管道")
    p.add_argument("--priority", type=int, default=None)
    p.add_argument("--delay", type=int, default=None)
    p.add_argument("--ttr", type=int, default=None)

    for name in ("peek-ready", "peek-delayed", "peek-buried"):
        p = sub.add_parser(name, help="查看任务")
        p.add_argument("--tube", "-t", default=None, help="目标管道")

    p = sub.add_parser("kick", help="踢回埋葬/延迟任务")
    p.add_argument("bound", type=int)
    p.add_argument("--tube", "-t", default=None, help="目标管道")

    p = sub.add_parser("pause-tube", help="暂停管道")
    p.add_argument("tube")
    p.add_argument("delay", type=int)

    return parser


def _job_to_dict(job: Job) -> dict[str, Any]:
    return {"id": job.id, "body": job.body.decode("utf-8", "replace")}


async def run_command(client: BeanstalkClient, args: argparse.Namespace) -> Any:
    """执行一个子命令，返回可 JSON 序列化的结果；协议级失败返回 None。"""
    command = args.command

    if command == "stats":
        return await client.stats()
    if command == "list-tubes":
        return await client.list_tubes()
    if command == "stats-tube":
        return await client.stats_tube(args.tube)
    if command == "stats-job":
        return await client.stats_job(args.id)
    if command == "pause-tube":
        return await client.pause_tube(args.tube, args.delay) or None

    tube = getattr(args, "tube", None) or client.state.tubes.using
    async with client.tubes.used_tube(tube):
        if client.state.tubes.using != tube:
            return None
        if command == "put":
            job_id = await client.put(args.body, args.priority, args.delay, args.ttr)
            return None if job_id is None else {"id": job_id}
        if command == "kick":
            kicked = await client.kick(args.bound)
            return None if kicked is None else {"kicked": kicked}

        peek = {
            "peek-ready": client.peek_ready,
            "peek-delayed": client.peek_delayed,
            "peek-buried": client.peek_buried,
        }[command]
        job = await peek()
        return None if job is None else _job_to_dict(job)


async def _main(args: argparse.Namespace) -> int:
    config = load_cli_config(args)
    async with BeanstalkClient(config) as client:
        result = await run_command(client, args)
        if result is None:
            error = client.take_error()
            status = error.status if error else "FAILED"
            message = error.message if error else ""
            print(f"{status}: {message}".rstrip(": "), file=sys.stderr)
            return 1

    print(json.dumps(result, ensure_ascii=False, indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    """
    程序主入口点。
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        return asyncio.run(_main(args))
    except ConfigError as ce:
        logger.error(f"配置错误: {ce}")
    except BeanstalkError as e:
        logger.error(f"运行时异常: {e}")
    except KeyboardInterrupt:
        logger.info("收到用户中断信号 (Ctrl+C)，准备退出...")
    return 1


if __name__ == "__main__":
    sys.exit(main())
