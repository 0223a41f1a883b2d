import boto3
from botocore.exceptions import ClientError
from app.config import settings
import logging

logger = logging.getLogger(__name__)


class S3AvatarStorage:
    def __init__(self):
        if not settings.s3_configured:
            raise ValueError("AWS S3 credentials and bucket name must be configured")

        self.s3_client = boto3.client(
            's3',
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name=settings.aws_region
        )
        self.bucket_name = settings.s3_bucket_name
        self.public_base_url = (
            settings.s3_public_base_url
            or f"https://{self.bucket_name}.s3.{settings.aws_region}.amazonaws.com"
        ).rstrip("/")

    def upload_file(self, file_content: bytes, key: str, content_type: str) -> str:
        """Upload an avatar to S3 and return its public URL"""
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=file_content,
                ContentType=content_type
            )
            return f"{self.public_base_url}/{key}"
        except ClientError as e:
            logger.error(f"Failed to upload avatar to S3: {str(e)}")
            raise


class SupabaseAvatarStorage:
    def __init__(self, supabase, bucket: str = None):
        self.supabase = supabase
        self.bucket = bucket or settings.avatars_bucket

    def upload_file(self, file_content: bytes, key: str, content_type: str) -> str:
        """Upload an avatar to the Supabase Storage bucket and return its public URL"""
        storage = self.supabase.storage.from_(self.bucket)
        storage.upload(key, file_content, file_options={"content-type": content_type})
        return storage.get_public_url(key)


def get_avatar_storage(supabase):
    """S3 when configured, otherwise the Supabase avatars bucket"""
    if settings.s3_configured:
        return S3AvatarStorage()
    return SupabaseAvatarStorage(supabase)
