"""
Netlify Graph API Client - Schema creation and query persistence.

All calls are GraphQL POSTs to the Netlify Graph API endpoint:

    POST {api_url}?app_id={app_id}
    Authorization: Bearer {NETLIFY_GRAPH_PERSIST_QUERY_TOKEN}
    Body: {"query": "...", "variables": {...}, "operationName": "..."}

Two mutations are used during a production build:

  1. CreateGraphQLSchemaMutation - Creates a fresh GraphQL schema for the site
     from the services enabled in netlifyGraph.json. The returned schema id
     tags every persisted query created in the same build.

  2. CreatePersistedQueryMutation - Stores one operation document server-side
     and returns the id the generated client sends as doc_id.
"""

import requests
from typing import Any, Dict, List, Optional

from .settings import DEFAULT_SETTINGS, NETLIFY_GRAPH_CONTROL_APP_ID


CREATE_GRAPHQL_SCHEMA_MUTATION = """
mutation CreateGraphQLSchemaMutation($input: OneGraphCreateGraphQLSchemaInput!) {
  oneGraph {
    createGraphQLSchema(input: $input) {
      graphQLSchema {
        id
        appId
        enabledServices
      }
    }
  }
}
"""

CREATE_PERSISTED_QUERY_MUTATION = """
mutation CreatePersistedQueryMutation(
  $nfToken: String!
  $appId: String!
  $query: String!
  $tags: [String!]!
  $description: String
) {
  oneGraph: createPersistedQuery(
    input: {
      query: $query
      accessToken: $nfToken
      appId: $appId
      tags: $tags
      description: $description
    }
  ) {
    persistedQuery {
      id
    }
  }
}
"""


class GraphClientError(RuntimeError):
    """Raised when the Netlify Graph API rejects a request."""

    def __init__(self, message: str, errors: Optional[List[Dict]] = None):
        super().__init__(message)
        self.errors = errors or []


class NetlifyGraphClient:
    """Client for the Netlify Graph control-plane GraphQL API.

    Attributes:
        api_url: GraphQL endpoint (query string is added per request).
        timeout: Seconds before a request is abandoned.
        debug: If True, print request details.
    """

    def __init__(
        self,
        api_url: str = DEFAULT_SETTINGS["NETLIFY_GRAPH_API_URL"],
        timeout: int = DEFAULT_SETTINGS["REQUEST_TIMEOUT"],
        debug: bool = False,
    ):
        self.api_url = api_url
        self.timeout = timeout
        self.debug = debug
        self._session = requests.Session()

    def execute(
        self,
        query: str,
        variables: Optional[Dict] = None,
        app_id: str = NETLIFY_GRAPH_CONTROL_APP_ID,
        access_token: Optional[str] = None,
        operation_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Execute a GraphQL document against the API.

        Returns:
            The full response body (with its "data" key).

        Raises:
            GraphClientError: If the HTTP request fails or the response
                contains a GraphQL "errors" array.
        """
        payload = {"query": query}
        if variables:
            payload["variables"] = variables
        if operation_name:
            payload["operationName"] = operation_name

        headers = {"Content-Type": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"

        if self.debug:
            print(f"  Executing {operation_name or 'GraphQL request'} ({len(query)} chars)")

        try:
            response = self._session.post(
                self.api_url,
                params={"app_id": app_id},
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise GraphClientError(f"Netlify Graph API request failed: {e}") from e

        result = response.json()

        if result.get("errors"):
            error_messages = [e.get("message", str(e)) for e in result["errors"]]
            raise GraphClientError(
                f"GraphQL errors: {'; '.join(error_messages)}", result["errors"]
            )

        return result

    def create_graphql_schema(
        self,
        site_id: str,
        access_token: str,
        enabled_services: List[str],
        set_as_default_for_app: bool = False,
        external_graphql_schemas: Optional[List] = None,
    ) -> str:
        """Create a new GraphQL schema for the site and return its id."""
        variables = {
            "input": {
                "appId": site_id,
                "enabledServices": enabled_services,
                "setAsDefaultForApp": set_as_default_for_app,
                "externalGraphQLSchemas": external_graphql_schemas or [],
            }
        }

        result = self.execute(
            CREATE_GRAPHQL_SCHEMA_MUTATION,
            variables,
            access_token=access_token,
            operation_name="CreateGraphQLSchemaMutation",
        )

        try:
            schema_id = result["data"]["oneGraph"]["createGraphQLSchema"]["graphQLSchema"]["id"]
        except (KeyError, TypeError) as e:
            raise GraphClientError(f"Unexpected createGraphQLSchema response: {result}") from e

        if self.debug:
            print(f"  Created GraphQL schema: {schema_id}")

        return schema_id

    def create_persisted_query(
        self,
        site_id: str,
        access_token: str,
        query: str,
        tags: List[str],
        description: Optional[str] = None,
    ) -> str:
        """Persist one operation document and return its id."""
        variables = {
            "nfToken": access_token,
            "appId": site_id,
            "query": query,
            "tags": tags,
            "description": description,
        }

        result = self.execute(
            CREATE_PERSISTED_QUERY_MUTATION,
            variables,
            access_token=access_token,
            operation_name="CreatePersistedQueryMutation",
        )

        try:
            return result["data"]["oneGraph"]["persistedQuery"]["id"]
        except (KeyError, TypeError) as e:
            raise GraphClientError(f"Unexpected createPersistedQuery response: {result}") from e
