"""
Serializers for the roster document.

The upload format and the listing format are the same JSON shape, so an
exported roster can be re-imported verbatim::

    [{"semaine": "01/01/24 au 07/01/24",
      "pharmacies": [{"nom": ..., "localisation": ..., "contact1": ...,
                      "contact2": ..., "latitude": ..., "longitude": ...}]}]
"""
from rest_framework import serializers

from portal.models import Week, Pharmacy


class PharmacySerializer(serializers.ModelSerializer):
    nom = serializers.CharField(source='name', max_length=255)
    localisation = serializers.CharField(source='location', max_length=512, required=False, allow_blank=True, default='')
    contact1 = serializers.CharField(max_length=64, required=False, allow_blank=True, default='')
    contact2 = serializers.CharField(max_length=64, required=False, allow_blank=True, default='')
    latitude = serializers.FloatField(required=False, allow_null=True, default=None, min_value=-90, max_value=90)
    longitude = serializers.FloatField(required=False, allow_null=True, default=None, min_value=-180, max_value=180)

    class Meta:
        model = Pharmacy
        fields = ['nom', 'localisation', 'contact1', 'contact2', 'latitude', 'longitude']


class WeekScheduleSerializer(serializers.ModelSerializer):
    semaine = serializers.CharField(source='label', max_length=64)
    pharmacies = PharmacySerializer(many=True, allow_empty=True)

    class Meta:
        model = Week
        fields = ['semaine', 'pharmacies']

    def validate_pharmacies(self, value):
        names = [p['name'] for p in value]
        if len(names) != len(set(names)):
            raise serializers.ValidationError('Chaque pharmacie doit avoir un nom unique dans la semaine.')
        return value


class RosterDocumentSerializer(serializers.Serializer):
    """Wraps the top-level list so a whole document validates in one call."""
    weeks = WeekScheduleSerializer(many=True, allow_empty=True)
