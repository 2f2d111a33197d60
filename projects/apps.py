from django.apps import AppConfig


class ProjectsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'projects'

    def ready(self):
        """Drop a project's trained model along with the project."""
        from django.db.models.signals import post_delete
        from projects.models import Project
        post_delete.connect(_delete_saved_head, sender=Project)


def _delete_saved_head(sender, instance, **kwargs):
    """Remove the ``models-<id>.keras`` file and the in-memory head of a deleted project."""
    from projects.engine import current_orchestrator, get_repository

    get_repository().delete(instance.pk)

    orchestrator = current_orchestrator()
    if orchestrator is not None:
        orchestrator.forget(instance.pk)
