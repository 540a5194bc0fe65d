"""Check which Google key the route estimate sends, without calling Google."""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'chauffeur_project.settings')
os.environ.setdefault('GOOGLE_MAPS_SERVER_KEY', 'server-key')
import django
django.setup()
from fares.services.distance import GoogleDirectionsEstimateSource
import requests

called = {}

def fake_get(url, params=None, timeout=None):
    called['params'] = params
    # Minimal fake response structure
    return type('R', (), {'raise_for_status': lambda self: None, 'json': lambda self: {"status": "OK", "routes": [{"legs": [{"distance": {"value": 1000}, "duration": {"value": 120}}]}]}})()

orig_get = requests.get
requests.get = fake_get

try:
    estimate = GoogleDirectionsEstimateSource(use_cache=False).estimate((52.373, 4.893), (52.3105, 4.7683))
    print('distance_km=', estimate.distance_km, 'duration_minutes=', estimate.duration_minutes)
    print('sent_key=', called.get('params', {}).get('key'))
finally:
    requests.get = orig_get
