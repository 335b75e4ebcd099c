"""
Management command to run one deployment from a terminal.

Usage:
    # Deploy PR 42 of checkout, narrating to the console
    python manage.py deploy checkout 42

    # Deploy main, narrating into a Slack channel instead
    python manage.py deploy checkout main --channel C0123456

    # Machine-readable result
    python manage.py deploy checkout 42 --json
"""

import json

from django.core.management.base import BaseCommand, CommandError

from apps.deploys.exceptions import InvalidRequest
from apps.deploys.orchestrator import DeploymentOrchestrator
from apps.deploys.parsing import parse_mention
from apps.notify.services import NotificationSink


class Command(BaseCommand):
    help = "Deploy an application: resolve → artifact → checks → manifest → commit → sync"

    def add_arguments(self, parser):
        parser.add_argument("application", type=str, help="Application (repository) name")
        parser.add_argument("ref", type=str, help="Pull request number or the main branch")
        parser.add_argument(
            "--channel",
            type=str,
            help="Slack channel to narrate into (default: console)",
        )
        parser.add_argument(
            "--json",
            action="store_true",
            help="Output result as JSON",
        )

    def handle(self, *args, **options):
        try:
            request = parse_mention(f"{options['application']} {options['ref']}")
        except InvalidRequest as e:
            raise CommandError(str(e))

        if options["channel"]:
            sink = NotificationSink.for_slack(options["channel"])
        else:
            # Keep stdout clean for --json
            sink = NotificationSink.for_log(stream=self.stderr if options["json"] else self.stdout)

        result = DeploymentOrchestrator().run(request, sink)

        if options["json"]:
            self.stdout.write(json.dumps(result.to_dict(), indent=2))
            return

        if result.succeeded:
            self.stdout.write(self.style.SUCCESS(f"Deployment {result.status.value}"))
        else:
            self.stdout.write(self.style.ERROR(f"Deployment {result.status.value}"))
            if result.error:
                self.stdout.write(f"  {result.error_type}: {result.error}")
