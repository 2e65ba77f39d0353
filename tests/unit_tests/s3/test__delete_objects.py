from file_manager_api.s3.delete_objects import delete_s3_object
from tests.consts import TEST_BUCKET_NAME


def test_delete_s3_object(mocked_aws):
    mocked_aws.put_object(Bucket=TEST_BUCKET_NAME, Key="1-cat.png", Body=b"meow")

    delete_s3_object(TEST_BUCKET_NAME, "1-cat.png", s3_client=mocked_aws)

    response = mocked_aws.list_objects_v2(Bucket=TEST_BUCKET_NAME)
    assert response.get("Contents", []) == []


def test_delete_s3_object__missing_key_is_not_an_error(mocked_aws):
    delete_s3_object(TEST_BUCKET_NAME, "never-uploaded.png", s3_client=mocked_aws)
    delete_s3_object(TEST_BUCKET_NAME, "never-uploaded.png", s3_client=mocked_aws)
