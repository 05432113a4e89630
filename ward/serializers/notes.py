from rest_framework import serializers


class LongStayNoteSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=10000, error_messages={'blank': 'Note content is required'})
