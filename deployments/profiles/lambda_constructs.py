"""
Lambda function constructs for the Personalisation Profile Store.

Each route has its own Lambda function. Functions are packaged from two
source directories that share the `profiles_shared` package (copied in by
package_lambdas.py before synth):

- lambda/profiles_upsert: profiles-profile-upsert, profiles-blob-upsert
- lambda/profiles_get: every read operation

All functions use the Python 3.11 runtime, 256 MB, 30 s timeout and X-Ray
tracing. Writers get read/write access to the table, readers get read access.
"""

from aws_cdk import (
    aws_lambda as lambda_,
    aws_iam as iam,
    aws_dynamodb as dynamodb,
    Duration,
)
from constructs import Construct
from typing import Dict


UPSERT_CODE_PATH = '../lambda/profiles_upsert'
GET_CODE_PATH = '../lambda/profiles_get'


class ProfileStoreLambdasConstruct(Construct):
    """
    Construct that creates all Lambda functions of the Profile Store.

    Attributes:
        profile_upsert_lambda: PUT /profile
        blob_upsert_lambda: PUT /blob
        profile_get_lambda: GET /profile/{id}
        tags_get_lambda: GET /profile/{id}/tags
        segment_get_lambda: GET /profile/{id}/segment/{segmentType}
        categories_get_lambda: GET /profile/{id}/segment/{segmentType}/categories
        top_categories_get_lambda: GET /profile/{id}/segment/{segmentType}/topcategories
        blob_get_lambda: GET /blob/{id}
        blob_segments_get_lambda: GET /blob/{id}/segments
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        profiles_table: dynamodb.Table,
        metrics_enabled: bool = True,
        **kwargs
    ) -> None:
        """
        Initialize Lambda functions construct.

        Args:
            scope: CDK construct scope
            construct_id: Unique construct identifier
            profiles_table: DynamoDB profiles table
            metrics_enabled: Publish CloudWatch custom metrics from the functions
        """
        super().__init__(scope, construct_id, **kwargs)

        self.profiles_table = profiles_table

        # Common Lambda configuration
        # boto3 and python-dateutil ship with the runtime, no layer needed
        common_config = {
            'runtime': lambda_.Runtime.PYTHON_3_11,
            'memory_size': 256,  # MB
            'timeout': Duration.seconds(30),
            'tracing': lambda_.Tracing.ACTIVE,
            'environment': {
                'PROFILES_TABLE_NAME': profiles_table.table_name,
                'METRICS_ENABLED': 'true' if metrics_enabled else 'false',
            },
        }

        # Writers
        self.profile_upsert_lambda = self._create_lambda(
            common_config,
            'ProfileUpsertLambda',
            function_name='profiles-profile-upsert',
            description='Profile upsert - writes the user item and its segments',
            code_path=UPSERT_CODE_PATH,
            handler='upsert_profile_handler.handler',
            writes=True,
        )
        self.blob_upsert_lambda = self._create_lambda(
            common_config,
            'BlobUpsertLambda',
            function_name='profiles-blob-upsert',
            description='Blob upsert - stores a free-form JSON document per profile',
            code_path=UPSERT_CODE_PATH,
            handler='upsert_blob_handler.handler',
            writes=True,
        )

        # Readers
        self.profile_get_lambda = self._create_lambda(
            common_config,
            'ProfileGetLambda',
            function_name='profiles-profile-get',
            description='Profile retrieval - assembles a profile from its partition',
            code_path=GET_CODE_PATH,
            handler='get_profile_handler.get_profile',
        )
        self.tags_get_lambda = self._create_lambda(
            common_config,
            'TagsGetLambda',
            function_name='profiles-tags-get',
            description='Tags retrieval - projects the tags of a profile',
            code_path=GET_CODE_PATH,
            handler='get_profile_handler.get_tags',
        )
        self.segment_get_lambda = self._create_lambda(
            common_config,
            'SegmentGetLambda',
            function_name='profiles-segment-get',
            description='Segment retrieval - by type and optional creation time',
            code_path=GET_CODE_PATH,
            handler='get_segment_handler.get_segment',
        )
        self.categories_get_lambda = self._create_lambda(
            common_config,
            'CategoriesGetLambda',
            function_name='profiles-categories-get',
            description='Categories retrieval - newest segment of a type',
            code_path=GET_CODE_PATH,
            handler='get_segment_handler.get_categories',
        )
        self.top_categories_get_lambda = self._create_lambda(
            common_config,
            'TopCategoriesGetLambda',
            function_name='profiles-topcategories-get',
            description='Top categories retrieval - newest segment of a type',
            code_path=GET_CODE_PATH,
            handler='get_segment_handler.get_top_categories',
        )
        self.blob_get_lambda = self._create_lambda(
            common_config,
            'BlobGetLambda',
            function_name='profiles-blob-get',
            description='Blob retrieval - whole document',
            code_path=GET_CODE_PATH,
            handler='get_blob_handler.get_blob',
        )
        self.blob_segments_get_lambda = self._create_lambda(
            common_config,
            'BlobSegmentsGetLambda',
            function_name='profiles-blob-segments-get',
            description='Blob segments retrieval - nested segments field only',
            code_path=GET_CODE_PATH,
            handler='get_blob_handler.get_blob_segments',
        )

    def _create_lambda(
        self,
        common_config: Dict,
        construct_id: str,
        function_name: str,
        description: str,
        code_path: str,
        handler: str,
        writes: bool = False
    ) -> lambda_.Function:
        """
        Create one Lambda function with least privilege table access.

        Permissions: DynamoDB read/write for writers (batch writes need both),
        read only otherwise
        """
        fn = lambda_.Function(
            self,
            construct_id,
            function_name=function_name,
            description=description,
            code=lambda_.Code.from_asset(code_path),
            handler=handler,
            **common_config
        )

        if writes:
            self.profiles_table.grant_read_write_data(fn)
        else:
            self.profiles_table.grant_read_data(fn)

        # CloudWatch custom metrics
        if common_config['environment']['METRICS_ENABLED'] == 'true':
            fn.add_to_role_policy(self._metrics_policy())

        return fn

    def _metrics_policy(self) -> iam.PolicyStatement:
        return iam.PolicyStatement(
            actions=['cloudwatch:PutMetricData'],
            resources=['*'],
            conditions={
                'StringEquals': {'cloudwatch:namespace': 'Personalisation'}
            },
        )
