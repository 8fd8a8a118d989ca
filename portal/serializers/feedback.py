from rest_framework import serializers

from portal.constants import FEEDBACK_MAX_LENGTH, FEEDBACK_MIN_LENGTH
from portal.models import UserFeedback


class FeedbackSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=[c[0] for c in UserFeedback.TYPE_CHOICES])
    content = serializers.CharField(min_length=FEEDBACK_MIN_LENGTH, max_length=FEEDBACK_MAX_LENGTH)


class AssistantQuerySerializer(serializers.Serializer):
    query = serializers.CharField(max_length=2000, error_messages={'blank': 'Veuillez entrer une question.'})
