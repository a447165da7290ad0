import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Talk',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(help_text='Title of the talk', max_length=100)),
                ('description', models.TextField(help_text='Description of the talk')),
                ('type', models.CharField(choices=[('regular', 'Regular'), ('tutorial', 'Tutorial')], default='regular', help_text='Format of the talk', max_length=50)),
                ('level', models.CharField(choices=[('entry', 'Entry level'), ('mid', 'Mid-level'), ('advanced', 'Advanced')], default='entry', help_text='Expected level of the audience', max_length=50)),
                ('category', models.CharField(choices=[('api', 'APIs (REST, SOAP, etc.)'), ('continuousdelivery', 'Continuous Delivery'), ('database', 'Database'), ('development', 'Development'), ('devops', 'DevOps'), ('framework', 'Framework'), ('ibmi', 'IBMi'), ('javascript', 'JavaScript'), ('security', 'Security'), ('testing', 'Testing'), ('uxui', 'UX/UI'), ('other', 'Other')], default='other', help_text='Category of the talk', max_length=50)),
                ('other', models.TextField(blank=True, help_text='Notes for the reviewers')),
                ('desired', models.BooleanField(default=False, help_text='The speaker really wants to give this talk')),
                ('slides', models.URLField(blank=True, help_text='Link to the slides', max_length=255)),
                ('sponsor', models.BooleanField(default=False, help_text="The speaker's company is a sponsor")),
                ('selected', models.BooleanField(default=False, help_text='The talk was selected for the schedule')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, help_text='When this talk was submitted')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='When this talk was last modified')),
                ('user', models.ForeignKey(help_text='Speaker who submitted the talk', on_delete=django.db.models.deletion.CASCADE, related_name='talks', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Talk',
                'verbose_name_plural': 'Talks',
                'ordering': ['created_at'],
                'indexes': [models.Index(fields=['created_at'], name='talks_talk_created_idx'), models.Index(fields=['selected'], name='talks_talk_selected_idx')],
            },
        ),
        migrations.CreateModel(
            name='Favorite',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, help_text='When the talk was bookmarked')),
                ('admin_user', models.ForeignKey(help_text='The reviewer', on_delete=django.db.models.deletion.CASCADE, related_name='favorites', to=settings.AUTH_USER_MODEL)),
                ('talk', models.ForeignKey(help_text='The bookmarked talk', on_delete=django.db.models.deletion.CASCADE, related_name='favorites', to='talks.talk')),
            ],
            options={
                'verbose_name': 'Favorite',
                'verbose_name_plural': 'Favorites',
                'ordering': ['-created_at'],
                'constraints': [models.UniqueConstraint(fields=('talk', 'admin_user'), name='unique_admin_favorite')],
            },
        ),
        migrations.CreateModel(
            name='TalkMeta',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('rating', models.SmallIntegerField(choices=[(-1, '-1'), (0, 'Not rated'), (1, '+1')], default=0, help_text='Rating given by the reviewer')),
                ('viewed', models.BooleanField(default=False, help_text='The reviewer has opened the talk')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, help_text='When the reviewer first rated or viewed the talk')),
                ('admin_user', models.ForeignKey(help_text='The reviewer', on_delete=django.db.models.deletion.CASCADE, related_name='talk_metas', to=settings.AUTH_USER_MODEL)),
                ('talk', models.ForeignKey(help_text='The reviewed talk', on_delete=django.db.models.deletion.CASCADE, related_name='metas', to='talks.talk')),
            ],
            options={
                'verbose_name': 'Talk meta',
                'verbose_name_plural': 'Talk metas',
                'ordering': ['-created_at'],
                'constraints': [models.UniqueConstraint(fields=('talk', 'admin_user'), name='unique_admin_talk_meta'), models.CheckConstraint(condition=models.Q(('rating__gte', -1), ('rating__lte', 1)), name='talk_meta_rating_range')],
            },
        ),
    ]
