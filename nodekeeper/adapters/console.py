"""
Console adapters — operator input through click prompts.
"""

from __future__ import annotations

import click

from nodekeeper.adapters.base import Confirmer, Prompter


class ClickConfirmer(Confirmer):
    """``click.confirm`` with a "no" default: only an explicit yes proceeds."""

    def confirm(self, question: str) -> bool:
        return click.confirm(question, default=False)


class ClickPrompter(Prompter):
    def ask(self, question: str) -> str:
        return click.prompt(question, type=str).strip()


class AssumeYes(Confirmer):
    """Non-interactive confirmer for ``--yes``: the question is only echoed."""

    def confirm(self, question: str) -> bool:
        click.echo(f"{question} [assumed yes]")
        return True
