"""sleuth ask -- research a question and save the report."""

from __future__ import annotations

import click

from sleuth.cli.formatting import format_answer, format_error, format_usage, get_console


@click.command()
@click.argument("question")
@click.option("--budget", default=1_000_000, type=int, show_default=True, help="Token budget for the run.")
@click.option("--max-bad-attempts", default=3, type=int, show_default=True, help="Rejected answers tolerated before stopping.")
@click.option("--output-dir", default="outputs", show_default=True, help="Directory for the final report.")
@click.option("--translate", "translate_to", default=None, help="Also save a copy translated into this language.")
@click.option("--artifacts-dir", default="tmp", show_default=True, help="Directory for per-step debug artifacts.")
@click.option("--no-artifacts", is_flag=True, help="Do not write per-step debug artifacts.")
@click.option("--step-sleep", default=1.0, type=float, show_default=True, help="Seconds to wait before each step.")
@click.option("-v", "--verbose", is_flag=True, help="Log agent progress to stderr.")
def ask(
    question: str,
    budget: int,
    max_bad_attempts: int,
    output_dir: str,
    translate_to: str | None,
    artifacts_dir: str,
    no_artifacts: bool,
    step_sleep: float,
    verbose: bool,
) -> None:
    """Research QUESTION and print the final answer."""
    from sleuth.agent.loop import get_response
    from sleuth.cli import configure_logging
    from sleuth.config import AgentConfig, Settings
    from sleuth.llm.client import OpenAIClient
    from sleuth.llm.generator import ObjectGenerator
    from sleuth.report import save_final_report

    if verbose:
        configure_logging()

    console = get_console()
    try:
        settings = Settings.from_env()
        generator = ObjectGenerator(
            OpenAIClient(
                api_key=settings.require("openai_api_key"),
                base_url=settings.openai_base_url,
            )
        )
        config = AgentConfig(
            step_sleep=step_sleep,
            artifacts_dir=None if no_artifacts else artifacts_dir,
        )
        outcome = get_response(
            question,
            token_budget=budget,
            max_bad_attempts=max_bad_attempts,
            generator=generator,
            config=config,
            settings=settings,
        )
        format_answer(outcome.result, console, answered=outcome.answered)

        tracker = outcome.context.token_tracker
        saved = save_final_report(
            outcome.result.answer,
            output_dir,
            translate_to=translate_to,
            generator=generator,
            tracker=tracker,
        )
        console.print()
        console.print(f"Report saved to [cyan]{saved.path}[/cyan]", highlight=False)
        if saved.translated_path is not None:
            console.print(
                f"Translated report saved to [cyan]{saved.translated_path}[/cyan]",
                highlight=False,
            )
        console.print()
        format_usage(tracker, console)
    except SystemExit:
        raise
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None
