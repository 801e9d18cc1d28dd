"""Sync the wiki repository with its Git remote."""

from django.core.management.base import BaseCommand, CommandError

from wiki.services.git_storage import GitOperationError, get_storage_service


class Command(BaseCommand):
    help = "Sync the wiki repository with its Git remote"

    def add_arguments(self, parser):
        parser.add_argument(
            "--pull",
            action="store_true",
            help="Pull latest changes from remote",
        )
        parser.add_argument(
            "--push",
            action="store_true",
            help="Push committed changes to remote",
        )

    def handle(self, *args, **options):
        storage = get_storage_service()

        if not options["pull"] and not options["push"]:
            self.stdout.write("Use --pull or --push to sync with remote")
            return

        try:
            if options["pull"]:
                self.stdout.write("Pulling from remote...")
                if storage.pull():
                    self.stdout.write(self.style.SUCCESS("Successfully pulled changes"))
                else:
                    self.stdout.write(self.style.WARNING("No remote configured"))

            if options["push"]:
                self.stdout.write("Pushing to remote...")
                if storage.push():
                    self.stdout.write(self.style.SUCCESS("Successfully pushed changes"))
                else:
                    self.stdout.write(self.style.WARNING("No remote configured"))
        except GitOperationError as e:
            raise CommandError(str(e)) from e
