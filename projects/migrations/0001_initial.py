import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Project',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(help_text='Human-readable project name, e.g. "Cats vs dogs".', max_length=150, validators=[django.core.validators.MinLengthValidator(1)])),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
            ],
            options={
                'db_table': 'projects',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Label',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=150, validators=[django.core.validators.MinLengthValidator(1)])),
                ('position', models.PositiveIntegerField(default=0, help_text='Display and class-index order within the project.')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('project', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='labels', to='projects.project')),
            ],
            options={
                'db_table': 'labels',
                'ordering': ['position', 'id'],
            },
        ),
        migrations.CreateModel(
            name='Image',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('image', models.ImageField(upload_to='images/%Y/%m/%d/')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('label', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='images', to='projects.label')),
            ],
            options={
                'db_table': 'images',
                'ordering': ['created_at', 'id'],
            },
        ),
        migrations.CreateModel(
            name='TrainedModel',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('label_names', models.JSONField(default=list, help_text='Trainable label order at training time.')),
                ('history', models.JSONField(default=list, help_text='Per-epoch training loss / accuracy.')),
                ('storage_key', models.CharField(max_length=200)),
                ('prediction', models.JSONField(default=dict, help_text='Training-time scores of every training image.')),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('project', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='trained_model', to='projects.project')),
            ],
            options={
                'db_table': 'trained_models',
            },
        ),
        migrations.AddConstraint(
            model_name='label',
            constraint=models.UniqueConstraint(fields=('project', 'name'), name='uq_label_project_name'),
        ),
    ]
