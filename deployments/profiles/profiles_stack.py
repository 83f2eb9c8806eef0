"""
Personalisation Profile Store CDK Stack.

Stack naming convention: <service>-<env>-stack (e.g. profiles-prod-stack)

Architecture:
- One DynamoDB table (single-table design, TTL on `ttl`)
- 9 Lambda functions, one per route
- REST API Gateway under /api/v1
- CloudFormation outputs for the API endpoint and table name

Usage Example:
    from aws_cdk import App
    from profiles.profiles_stack import ProfileStoreStack

    app = App()
    ProfileStoreStack(app, 'profiles-dev-stack', env_name='dev')
    app.synth()
"""

from aws_cdk import (
    Stack,
    CfnOutput,
    Tags,
)
from constructs import Construct

from .table_construct import ProfileStoreTableConstruct
from .lambda_constructs import ProfileStoreLambdasConstruct
from .api_construct import ProfileStoreApiConstruct


class ProfileStoreStack(Stack):
    """
    Main CDK stack for the Personalisation Profile Store.

    Attributes:
        table: DynamoDB table construct
        lambdas: Lambda functions construct
        api: API Gateway construct
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        env_name: str = 'dev',
        metrics_enabled: bool = True,
        **kwargs
    ) -> None:
        """
        Initialize Profile Store Stack.

        Args:
            scope: CDK app scope
            construct_id: Stack identifier (<service>-<env>-stack)
            env_name: Environment name (dev, staging, prod, etc.)
            metrics_enabled: Publish CloudWatch custom metrics from the functions
            **kwargs: Additional stack properties (env, description, etc.)
        """
        super().__init__(scope, construct_id, **kwargs)

        self.env_name = env_name

        Tags.of(self).add('Service', 'personalisation-profile-store')
        Tags.of(self).add('Environment', env_name)
        Tags.of(self).add('ManagedBy', 'CDK')
        Tags.of(self).add('Domain', 'profiles')

        # 1. DynamoDB table
        self.table = ProfileStoreTableConstruct(
            self,
            'Table',
        )

        # 2. Lambda functions
        self.lambdas = ProfileStoreLambdasConstruct(
            self,
            'Lambdas',
            profiles_table=self.table.profiles_table,
            metrics_enabled=metrics_enabled,
        )

        # 3. API Gateway
        self.api = ProfileStoreApiConstruct(
            self,
            'Api',
            profile_upsert_lambda=self.lambdas.profile_upsert_lambda,
            blob_upsert_lambda=self.lambdas.blob_upsert_lambda,
            profile_get_lambda=self.lambdas.profile_get_lambda,
            tags_get_lambda=self.lambdas.tags_get_lambda,
            segment_get_lambda=self.lambdas.segment_get_lambda,
            categories_get_lambda=self.lambdas.categories_get_lambda,
            top_categories_get_lambda=self.lambdas.top_categories_get_lambda,
            blob_get_lambda=self.lambdas.blob_get_lambda,
            blob_segments_get_lambda=self.lambdas.blob_segments_get_lambda,
        )

        CfnOutput(
            self,
            'ApiEndpointUrl',
            value=self.api.api.url,
            description='Profile Store API endpoint URL',
            export_name=f'{construct_id}-api-url',
        )

        CfnOutput(
            self,
            'ApiId',
            value=self.api.api.rest_api_id,
            description='Profile Store API Gateway ID',
            export_name=f'{construct_id}-api-id',
        )

        CfnOutput(
            self,
            'ProfilesTableName',
            value=self.table.profiles_table.table_name,
            description='Profiles DynamoDB table name',
            export_name=f'{construct_id}-profiles-table',
        )
