from rest_framework import serializers

from portal.constants import COMMENT_MAX_LENGTH, COMMENT_MIN_LENGTH
from portal.models import HealthPost, HealthPostComment


class HealthPostSerializer(serializers.ModelSerializer):
    comment_count = serializers.IntegerField(read_only=True, default=0)

    class Meta:
        model = HealthPost
        fields = ['id', 'title', 'content', 'image_url', 'created_at', 'publish_at', 'likes', 'comment_count']
        read_only_fields = fields


class HealthPostWriteSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255, error_messages={'blank': 'Le titre et le contenu sont requis.'})
    content = serializers.CharField(error_messages={'blank': 'Le titre et le contenu sont requis.'})
    image_url = serializers.URLField(max_length=1024, required=False, allow_null=True, allow_blank=True)
    publish_at = serializers.DateTimeField(required=False, allow_null=True)

    def to_internal_value(self, data):
        # an empty publish_at from a form means "clear the schedule"
        if hasattr(data, 'get') and data.get('publish_at') == '':
            data = data.copy()
            data['publish_at'] = None
        return super().to_internal_value(data)


class CommentSerializer(serializers.ModelSerializer):
    post_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = HealthPostComment
        fields = ['id', 'post_id', 'content', 'created_at']
        read_only_fields = fields


class CommentCreateSerializer(serializers.Serializer):
    content = serializers.CharField(
        min_length=COMMENT_MIN_LENGTH,
        max_length=COMMENT_MAX_LENGTH,
        trim_whitespace=False,
        error_messages={
            'blank': 'Le commentaire ne peut pas être vide.',
            'min_length': 'Le commentaire ne peut pas être vide.',
            'max_length': 'Le commentaire est trop long.',
        },
    )
