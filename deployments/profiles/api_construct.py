"""
API Gateway construct for the Personalisation Profile Store.

REST API with one Lambda proxy integration per route under /api/v1:

1. PUT /api/v1/profile                                          - Upsert profile
2. PUT /api/v1/blob                                             - Upsert blob
3. GET /api/v1/profile/{id}                                     - Get profile
4. GET /api/v1/profile/{id}/tags                                - Get tags
5. GET /api/v1/profile/{id}/segment/{segmentType}               - Get segment (?createdAt=)
6. GET /api/v1/profile/{id}/segment/{segmentType}/categories    - Get categories
7. GET /api/v1/profile/{id}/segment/{segmentType}/topcategories - Get top categories
8. GET /api/v1/blob/{id}                                        - Get blob
9. GET /api/v1/blob/{id}/segments                               - Get blob segments

Request bodies are only checked for being JSON objects here; the upsert
Lambda functions do the full validation.

⚠️ WARNING: This API is PUBLIC (no authorization). Put it behind IAM or an
   API key before exposing it outside a private network.
"""

from typing import List

from aws_cdk import (
    aws_apigateway as apigw,
    aws_lambda as lambda_,
)
from constructs import Construct


def _method_responses(success_code: str, *error_codes: str) -> List[apigw.MethodResponse]:
    return [
        apigw.MethodResponse(
            status_code=success_code,
            response_models={
                'application/json': apigw.Model.EMPTY_MODEL
            }
        ),
        *[apigw.MethodResponse(status_code=code) for code in error_codes],
    ]


class ProfileStoreApiConstruct(Construct):
    """
    Construct that creates the REST API Gateway for the Profile Store.

    Attributes:
        api: The REST API Gateway instance
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        profile_upsert_lambda: lambda_.Function,
        blob_upsert_lambda: lambda_.Function,
        profile_get_lambda: lambda_.Function,
        tags_get_lambda: lambda_.Function,
        segment_get_lambda: lambda_.Function,
        categories_get_lambda: lambda_.Function,
        top_categories_get_lambda: lambda_.Function,
        blob_get_lambda: lambda_.Function,
        blob_segments_get_lambda: lambda_.Function,
        **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # Create REST API
        self.api = apigw.RestApi(
            self,
            'ProfileStoreApi',
            rest_api_name='personalisation-profile-store-api',
            description='Personalisation Profile Store REST API',
            deploy=True,
            deploy_options=apigw.StageOptions(
                stage_name='prod',
                throttling_rate_limit=1000,  # requests per second
                throttling_burst_limit=2000,  # concurrent requests
                tracing_enabled=True,
                logging_level=apigw.MethodLoggingLevel.INFO,
                # Request and response bodies hold personal data
                data_trace_enabled=False,
                metrics_enabled=True,
            ),
            default_cors_preflight_options=apigw.CorsOptions(
                allow_origins=apigw.Cors.ALL_ORIGINS,
                allow_methods=['GET', 'PUT', 'OPTIONS'],
                allow_headers=[
                    'Content-Type',
                    'X-Amz-Date',
                    'Authorization',
                    'X-Api-Key',
                    'X-Amz-Security-Token',
                ],
            ),
            cloud_watch_role=True,
        )

        # Request validators
        body_validator = apigw.RequestValidator(
            self,
            'BodyValidator',
            rest_api=self.api,
            request_validator_name='body-validator',
            validate_request_body=True,
            validate_request_parameters=False,
        )
        params_validator = apigw.RequestValidator(
            self,
            'ParamsValidator',
            rest_api=self.api,
            request_validator_name='params-validator',
            validate_request_body=False,
            validate_request_parameters=True,
        )

        json_object_model = self._create_json_object_model()

        # /api/v1
        v1_resource = self.api.root.add_resource('api').add_resource('v1')

        # /api/v1/profile
        profile_resource = v1_resource.add_resource('profile')

        # 1. PUT /api/v1/profile - Upsert profile
        profile_resource.add_method(
            'PUT',
            apigw.LambdaIntegration(profile_upsert_lambda),
            authorization_type=apigw.AuthorizationType.NONE,
            request_validator=body_validator,
            request_models={
                'application/json': json_object_model
            },
            method_responses=_method_responses('201', '400', '500'),
        )

        # /api/v1/profile/{id}
        profile_id_resource = profile_resource.add_resource('{id}')

        # 3. GET /api/v1/profile/{id} - Get profile
        profile_id_resource.add_method(
            'GET',
            apigw.LambdaIntegration(profile_get_lambda),
            authorization_type=apigw.AuthorizationType.NONE,
            request_validator=params_validator,
            request_parameters={
                'method.request.path.id': True,
            },
            method_responses=_method_responses('200', '400', '404', '500'),
        )

        # 4. GET /api/v1/profile/{id}/tags - Get tags
        profile_id_resource.add_resource('tags').add_method(
            'GET',
            apigw.LambdaIntegration(tags_get_lambda),
            authorization_type=apigw.AuthorizationType.NONE,
            request_validator=params_validator,
            request_parameters={
                'method.request.path.id': True,
            },
            method_responses=_method_responses('200', '400', '500'),
        )

        # /api/v1/profile/{id}/segment/{segmentType}
        segment_type_resource = (
            profile_id_resource
            .add_resource('segment')
            .add_resource('{segmentType}')
        )
        segment_parameters = {
            'method.request.path.id': True,
            'method.request.path.segmentType': True,
        }

        # 5. GET /api/v1/profile/{id}/segment/{segmentType}?createdAt= - Get segment
        segment_type_resource.add_method(
            'GET',
            apigw.LambdaIntegration(segment_get_lambda),
            authorization_type=apigw.AuthorizationType.NONE,
            request_validator=params_validator,
            request_parameters={
                **segment_parameters,
                'method.request.querystring.createdAt': False,
            },
            method_responses=_method_responses('200', '400', '404', '409', '500'),
        )

        # 6. GET .../categories - Get categories
        segment_type_resource.add_resource('categories').add_method(
            'GET',
            apigw.LambdaIntegration(categories_get_lambda),
            authorization_type=apigw.AuthorizationType.NONE,
            request_validator=params_validator,
            request_parameters=segment_parameters,
            method_responses=_method_responses('200', '400', '500'),
        )

        # 7. GET .../topcategories - Get top categories
        segment_type_resource.add_resource('topcategories').add_method(
            'GET',
            apigw.LambdaIntegration(top_categories_get_lambda),
            authorization_type=apigw.AuthorizationType.NONE,
            request_validator=params_validator,
            request_parameters=segment_parameters,
            method_responses=_method_responses('200', '400', '500'),
        )

        # /api/v1/blob
        blob_resource = v1_resource.add_resource('blob')

        # 2. PUT /api/v1/blob - Upsert blob
        blob_resource.add_method(
            'PUT',
            apigw.LambdaIntegration(blob_upsert_lambda),
            authorization_type=apigw.AuthorizationType.NONE,
            request_validator=body_validator,
            request_models={
                'application/json': json_object_model
            },
            method_responses=_method_responses('201', '400', '500'),
        )

        blob_id_resource = blob_resource.add_resource('{id}')

        # 8. GET /api/v1/blob/{id} - Get blob
        blob_id_resource.add_method(
            'GET',
            apigw.LambdaIntegration(blob_get_lambda),
            authorization_type=apigw.AuthorizationType.NONE,
            request_validator=params_validator,
            request_parameters={
                'method.request.path.id': True,
            },
            method_responses=_method_responses('200', '400', '404', '500'),
        )

        # 9. GET /api/v1/blob/{id}/segments - Get blob segments
        blob_id_resource.add_resource('segments').add_method(
            'GET',
            apigw.LambdaIntegration(blob_segments_get_lambda),
            authorization_type=apigw.AuthorizationType.NONE,
            request_validator=params_validator,
            request_parameters={
                'method.request.path.id': True,
            },
            method_responses=_method_responses('200', '400', '404', '500'),
        )

    def _create_json_object_model(self) -> apigw.Model:
        """Request model accepting any JSON object."""
        return self.api.add_model(
            'JsonObjectModel',
            content_type='application/json',
            model_name='JsonObject',
            schema=apigw.JsonSchema(
                schema=apigw.JsonSchemaVersion.DRAFT4,
                title='JSON Object',
                type=apigw.JsonSchemaType.OBJECT,
            )
        )
