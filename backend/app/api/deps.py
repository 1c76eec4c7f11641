from app.services.uploads import UploadUrlIssuer


def get_upload_url_issuer() -> UploadUrlIssuer:
    return UploadUrlIssuer()
