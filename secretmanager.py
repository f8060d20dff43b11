from functools import lru_cache

from google.cloud import secretmanager


@lru_cache(maxsize=16)
def get_secret(secret_name: str) -> str:
    client = secretmanager.SecretManagerServiceClient()
    response = client.access_secret_version(request={"name": secret_name})
    return response.payload.data.decode("UTF-8")
