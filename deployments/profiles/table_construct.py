"""
DynamoDB table construct for the Personalisation Profile Store.

One table holds every profile using a single-table design. All items of a
profile share its partition and are told apart by sort key:

    PK = USER#{id}   SK = USER#{id}                   user item
    PK = USER#{id}   SK = SEG#{segmentType}#{RFC3339}  segment item
    PK = USER#{id}   SK = BLOB#{id}                   blob item

Access patterns:
1. Get profile: Query PK=USER#{id}
2. Get segment: GetItem on the full key, or Query begins_with(SK, SEG#{type}#)
3. Newest segment of a type: same query, descending, limit 1
4. Get blob / tags: GetItem with a projection

Items carry an epoch-seconds `ttl` attribute so DynamoDB expires them.
"""

from aws_cdk import (
    aws_dynamodb as dynamodb,
    RemovalPolicy,
)
from constructs import Construct


class ProfileStoreTableConstruct(Construct):
    """
    Construct that creates the profiles DynamoDB table.

    Attributes:
        profiles_table: The profiles DynamoDB table
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.profiles_table = dynamodb.Table(
            self,
            "ProfilesTable",
            # Primary key configuration
            partition_key=dynamodb.Attribute(
                name="pk",
                type=dynamodb.AttributeType.STRING
            ),
            sort_key=dynamodb.Attribute(
                name="sk",
                type=dynamodb.AttributeType.STRING
            ),
            # Billing configuration
            billing_mode=dynamodb.BillingMode.PAY_PER_REQUEST,
            # Profiles, segments and blobs expire on their own
            time_to_live_attribute="ttl",
            # Data protection
            point_in_time_recovery=True,
            # Deletion policy - retain for production safety
            removal_policy=RemovalPolicy.RETAIN,
        )
