"""GitPlant health calculation package."""
