import logging
from functools import lru_cache
from typing import Optional
import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import Depends
from tubely.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class S3Client:
    def __init__(self, bucket: str, region: str):
        self.s3_client = boto3.client("s3", region_name=region)
        self.bucket = bucket
        self.region = region

    def upload_file(self, file_obj, s3_key: str, content_type: str) -> bool:
        """Upload file to S3."""
        try:
            self.s3_client.upload_fileobj(
                file_obj,
                self.bucket,
                s3_key,
                ExtraArgs={"ContentType": content_type},
            )
            logger.info(f"Uploaded file to s3://{self.bucket}/{s3_key}")
            return True
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error uploading to s3://{self.bucket}/{s3_key}: {e}")
            return False

    def generate_presigned_url(
        self, bucket: str, s3_key: str, expiration: int
    ) -> Optional[str]:
        """Generate a time-limited GET URL for an object."""
        try:
            return self.s3_client.generate_presigned_url(
                "get_object",
                Params={"Bucket": bucket, "Key": s3_key},
                ExpiresIn=expiration,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error generating presigned URL for s3://{bucket}/{s3_key}: {e}")
            return None


@lru_cache(maxsize=8)
def s3_client_for(bucket: str, region: str) -> S3Client:
    return S3Client(bucket=bucket, region=region)


def get_s3_client(settings: Settings = Depends(get_settings)) -> S3Client:
    """Client for the configured bucket; the bucket recorded on videos comes from the same settings."""
    return s3_client_for(settings.s3_bucket, settings.aws_region)
