"""
Database models for the PharmaGuard portal.

Two independent datasets live here.  The duty roster (weeks and their
pharmacies) is only ever written wholesale by the administrative bulk
replace in :mod:`portal.services.roster`.  The health feed (posts,
comments, like counters) is mutated incrementally by visitors and
administrators and is never bulk-replaced.
"""
from __future__ import annotations

from django.db import models
from django.db.models import Q
from django.utils import timezone


class Week(models.Model):
    """One published roster week.

    ``label`` keeps the human readable "DD/MM/YY au DD/MM/YY" text exactly
    as uploaded; it is parsed on read, so an unparseable label is stored
    but never resolves as the active week.
    """
    label = models.CharField(max_length=64)
    # Index in the uploaded document; listings sort on it.
    position = models.PositiveIntegerField(db_index=True)

    class Meta:
        ordering = ['position', 'id']

    def __str__(self) -> str:
        return self.label


class Pharmacy(models.Model):
    """A pharmacy on duty for a given week."""
    week = models.ForeignKey(Week, on_delete=models.CASCADE, related_name='pharmacies')
    name = models.CharField(max_length=255)
    location = models.CharField(max_length=512, blank=True)
    contact1 = models.CharField(max_length=64, blank=True)
    contact2 = models.CharField(max_length=64, blank=True)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['position', 'id']
        constraints = [
            models.UniqueConstraint(fields=['week', 'name'], name='uniq_pharmacy_name_per_week'),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.week_id})"


class RosterRevision(models.Model):
    """Singleton row bumped by every successful roster replace.

    The replace procedure locks this row for its whole duration so that two
    administrators replacing the roster at the same time are serialized.
    """
    SINGLETON_ID = 1

    id = models.PositiveSmallIntegerField(primary_key=True, default=SINGLETON_ID)
    number = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"roster r{self.number}"


class HealthPostQuerySet(models.QuerySet):
    def visible(self, now=None):
        now = now or timezone.now()
        return self.filter(Q(publish_at__isnull=True) | Q(publish_at__lte=now))


class HealthPost(models.Model):
    """An article of the health feed.

    A post with a ``publish_at`` in the future is scheduled: administrators
    see it, visitors do not until that instant passes.
    """
    title = models.CharField(max_length=255)
    content = models.TextField()
    image_url = models.URLField(max_length=1024, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    publish_at = models.DateTimeField(blank=True, null=True, db_index=True)
    likes = models.PositiveIntegerField(default=0)

    objects = HealthPostQuerySet.as_manager()

    class Meta:
        constraints = [
            models.CheckConstraint(condition=Q(likes__gte=0), name='health_post_likes_non_negative'),
        ]

    def is_visible(self, now=None) -> bool:
        now = now or timezone.now()
        return self.publish_at is None or self.publish_at <= now

    def __str__(self) -> str:
        return self.title


class HealthPostComment(models.Model):
    """Anonymous, append-only comment on a health post."""
    post = models.ForeignKey(HealthPost, on_delete=models.CASCADE, related_name='comments')
    content = models.CharField(max_length=300)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=['post', 'created_at'])]

    def __str__(self) -> str:
        return f"comment {self.id} post={self.post_id}"


class UserFeedback(models.Model):
    TYPE_REVIEW = 'avis'
    TYPE_SUGGESTION = 'suggestion'
    TYPE_CHOICES = ((TYPE_REVIEW, 'avis'), (TYPE_SUGGESTION, 'suggestion'))

    type = models.CharField(max_length=16, choices=TYPE_CHOICES)
    content = models.CharField(max_length=500)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.type}: {self.content[:30]}"


class AuditEvent(models.Model):
    """Trail of administrative actions (roster replace, post edits)."""
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.IntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at']),
            models.Index(fields=['object_type', 'object_id', 'created_at']),
        ]

    def __str__(self):
        return f"{self.action}:{self.object_type}/{self.object_id}@{self.created_at:%F %T}"
