"""
Django admin registrations for the portal models.

Roster rows are read-only here: the only sanctioned way to change the
roster is the bulk replace, which keeps the revision counter and the
cached listing consistent.
"""

from django.contrib import admin

from .models import (
    Week,
    Pharmacy,
    RosterRevision,
    HealthPost,
    HealthPostComment,
    UserFeedback,
    AuditEvent,
)


class ReadOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class PharmacyInline(admin.TabularInline):
    model = Pharmacy
    extra = 0
    can_delete = False
    readonly_fields = ('position', 'name', 'location', 'contact1', 'contact2', 'latitude', 'longitude')


@admin.register(Week)
class WeekAdmin(ReadOnlyAdmin):
    list_display = ('position', 'label')
    inlines = [PharmacyInline]


@admin.register(Pharmacy)
class PharmacyAdmin(ReadOnlyAdmin):
    list_display = ('name', 'week', 'location', 'contact1')
    list_filter = ('week',)
    search_fields = ('name', 'location')


@admin.register(RosterRevision)
class RosterRevisionAdmin(ReadOnlyAdmin):
    list_display = ('number', 'updated_at')


@admin.register(HealthPost)
class HealthPostAdmin(admin.ModelAdmin):
    list_display = ('id', 'title', 'likes', 'publish_at', 'created_at')
    search_fields = ('title',)
    readonly_fields = ('likes',)


@admin.register(HealthPostComment)
class HealthPostCommentAdmin(admin.ModelAdmin):
    list_display = ('id', 'post', 'content', 'created_at')
    search_fields = ('content', 'post__title')


@admin.register(UserFeedback)
class UserFeedbackAdmin(admin.ModelAdmin):
    list_display = ('id', 'type', 'content', 'created_at')
    list_filter = ('type',)


@admin.register(AuditEvent)
class AuditEventAdmin(ReadOnlyAdmin):
    list_display = ('action', 'object_type', 'object_id', 'created_at')
    list_filter = ('action',)
