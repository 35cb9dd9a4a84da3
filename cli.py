import asyncio
from typing import Any, Dict, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from config.logic import load_and_merge_configs
from config.models import AIConfig, Config
from core.contracts.models import CommitMessage, GenerationResult
from core.pipeline import CommitMessageGenerator, check_local_backend
from utils.errors import SafeCommitException
from utils.git import commit, is_git_repository
from utils.logger import logger, setup_logger


def apply_cli_overrides(
    config: Config, provider: Optional[str], model: Optional[str], persona: Optional[str]
) -> Config:
    """将CLI选项应用于加载的配置"""
    overrides: Dict[str, Any] = {}
    if provider:
        overrides["provider"] = provider
        logger.info(f"使用 provider 覆盖配置: {provider}")
    if model:
        # 模型名称作用于所选后端
        target = provider or config.ai.provider.value
        overrides["local_model" if target == "local" else "cloud_model"] = model
        logger.info(f"使用 model 覆盖配置: {model}")
    if persona:
        overrides["persona"] = persona
        logger.info(f"使用 persona 覆盖配置: {persona}")
    if overrides:
        ai = AIConfig.model_validate({**config.ai.model_dump(), **overrides})
        config = config.model_copy(update={"ai": ai})
    return config


def format_message(message: CommitMessage) -> str:
    """提交信息的文本形式：标题，空行，正文"""
    if message.body:
        return f"{message.title}\n\n{message.body}"
    return message.title


async def run_generation(config: Config, repo_path: str) -> GenerationResult:
    """
    初始化并运行提交信息生成流水线
    """
    pipeline = CommitMessageGenerator(config)
    return await pipeline.generate(repo_path)


@click.group()
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="启用详细日志记录以进行调试",
)
@click.pass_context
def cli(ctx, verbose: bool):
    """
    安全的 Git 提交信息生成器，支持离线规则、本地模型和云端模型。
    """
    setup_logger(log_level="DEBUG" if verbose else "INFO")
    ctx.obj = {"verbose": verbose}


@cli.command("generate")
@click.option(
    "--repo",
    "repo_path",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    show_default=True,
    help="Git 仓库路径",
)
@click.option(
    "-c", "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="自定义配置文件的路径",
)
@click.option("--provider", type=click.Choice(["offline", "local", "cloud"]), help="覆盖生成后端")
@click.option("--model", type=str, help="覆盖模型名称 (例如 'gpt-4o-mini')")
@click.option("--persona", type=click.Choice(["standard", "security"]), help="覆盖提示词风格")
@click.option("--commit", "do_commit", is_flag=True, default=False, help="生成后直接提交")
@click.pass_context
def generate(
    ctx,
    repo_path: str,
    config_path: Optional[str],
    provider: Optional[str],
    model: Optional[str],
    persona: Optional[str],
    do_commit: bool,
):
    """
    生成提交信息。
    """
    console = Console()
    verbose = ctx.obj.get("verbose", False)

    try:
        if not is_git_repository(repo_path):
            raise SafeCommitException("不是一个 Git 仓库。请在 Git 仓库中运行此命令。")

        config = load_and_merge_configs(custom_config_path=config_path, repo_path=repo_path)
        config = apply_cli_overrides(config, provider, model, persona)

        with console.status("[bold green]正在生成提交信息...[/bold green]"):
            result = asyncio.run(run_generation(config, repo_path))

        message = result.render()
        source = result.source.value if result.source else "error"
        console.print(Panel(
            Text(format_message(message)),
            title=f"[bold cyan]生成的提交信息[/bold cyan] ({source})",
            border_style="cyan" if result.ok else "red",
            expand=False,
        ))

        if not result.ok:
            ctx.exit(1)

        if do_commit:
            commit(format_message(message), repo_path=repo_path)
            console.print("\n[bold green]✅ 提交成功![/bold green]")

    except SafeCommitException as e:
        logger.opt(exception=e if verbose else None).error(f"发生已知错误: {e}")
        console.print(f"[bold red]错误:[/bold red] {e}")
        ctx.exit(1)


@cli.command("check-local")
@click.option("--url", type=str, help="本地推理服务地址，默认读取配置")
@click.option("--model", type=str, help="本地模型名称，默认读取配置")
@click.option(
    "-c", "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="自定义配置文件的路径",
)
@click.pass_context
def check_local(ctx, url: Optional[str], model: Optional[str], config_path: Optional[str]):
    """
    检查本地模型服务是否可用。
    """
    console = Console()
    try:
        config = load_and_merge_configs(custom_config_path=config_path)
    except SafeCommitException as e:
        console.print(f"[bold red]错误:[/bold red] {e}")
        ctx.exit(1)

    url = url or config.ai.local_url
    model = model or config.ai.local_model
    with console.status(f"[bold green]正在连接 {url} ...[/bold green]"):
        reachable = asyncio.run(check_local_backend(url, model))

    if reachable:
        console.print(f"[bold green]✅ 本地模型 {model} 可用[/bold green]")
    else:
        console.print(f"[bold red]本地模型 {model} 不可用:[/bold red] {url}")
        ctx.exit(1)


if __name__ == "__main__":
    cli()
