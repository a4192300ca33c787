#!/usr/bin/env python3
"""
JSON-RPC 2.0 Server for ValidationService

Lets hosts written in any language validate and sanitize input by spawning
a process and talking over stdin/stdout.

Protocol: JSON-RPC 2.0 over stdin/stdout (newline-delimited JSON)
Specification: https://www.jsonrpc.org/specification

Usage:
    python -m request_validation.jsonrpc_server [--debug]

Example request (stdin):
    {"jsonrpc":"2.0","id":1,"method":"validate","params":{"data":{"email":"x"},"rules":{"email":"email"}}}

Example response (stdout):
    {"jsonrpc":"2.0","id":1,"result":{"passed":false,"messages":{"email":["email is not a valid email"]},"errors":[...]}}
"""

import argparse
import asyncio
import json
import signal
import sys
from typing import Any, Dict, Optional

from request_validation import ValidationService
from request_validation.errors import ValidationLibError
from request_validation.validation_engine import ValidationResult


class InvalidParams(ValueError):
    """Raised by handlers when request params are missing or mistyped."""


class ValidationJsonRpcServer:
    """JSON-RPC 2.0 server wrapping ValidationService API."""

    # JSON-RPC error codes
    ERROR_PARSE = -32700        # Invalid JSON
    ERROR_INVALID_REQUEST = -32600  # Invalid JSON-RPC structure
    ERROR_METHOD_NOT_FOUND = -32601  # Unknown method
    ERROR_INVALID_PARAMS = -32602   # Invalid parameters
    ERROR_INTERNAL = -32000      # Application error (catch-all)
    ERROR_VALIDATION = -32001    # Unknown rule, malformed spec, sanitizer failure

    def __init__(self, debug: bool = False, service: Optional[ValidationService] = None):
        """
        Initialize JSON-RPC server.

        Args:
            debug: Enable debug logging to stderr
            service: ValidationService to expose (a default one is created if omitted)
        """
        self.service = service or ValidationService()
        self.running = False
        self.debug = debug

        # Method dispatch table
        self.methods = {
            'validate': self._handle_validate,
            'validate_all': self._handle_validate_all,
            'sanitize': self._handle_sanitize,
            'discover_rules': self._handle_discover_rules,
        }

    def _log(self, message: str):
        """Log debug message to stderr (doesn't interfere with JSON-RPC on stdout)."""
        if self.debug:
            sys.stderr.write(f"[DEBUG] {message}\n")
            sys.stderr.flush()

    def start_server(self):
        """
        Start the JSON-RPC server loop.

        Reads requests from stdin, processes them, writes responses to stdout.
        Runs until EOF or stop signal received.
        """
        self.running = True
        self._log("ValidationService JSON-RPC server started")

        while self.running:
            try:
                line = sys.stdin.readline()

                if not line:
                    self._log("EOF received, shutting down")
                    break

                if not line.strip():
                    continue

                self._log(f"Received: {line.strip()}")
                response = self.handle_request(line)
                self._send_response(response)

            except KeyboardInterrupt:
                self._log("KeyboardInterrupt received, shutting down")
                break

        self._log("Server stopped")

    def stop_server(self):
        """Stop the server gracefully."""
        self.running = False
        self._log("Stop signal received")

    def handle_request(self, request_json: str) -> Dict[str, Any]:
        """
        Parse and process a JSON-RPC request.

        Args:
            request_json: JSON-RPC request string

        Returns:
            JSON-RPC response dict (success or error)
        """
        request_id = None

        try:
            try:
                request = json.loads(request_json)
            except json.JSONDecodeError as e:
                return self._error_response(None, self.ERROR_PARSE,
                                           f"Parse error: {e}")

            if not isinstance(request, dict):
                return self._error_response(None, self.ERROR_INVALID_REQUEST,
                                           "Request must be a JSON object")

            if request.get("jsonrpc") != "2.0":
                return self._error_response(None, self.ERROR_INVALID_REQUEST,
                                           f"Invalid JSON-RPC version: {request.get('jsonrpc')}")

            request_id = request.get("id")
            method = request.get("method")
            params = request.get("params", {})

            if not method:
                return self._error_response(request_id, self.ERROR_INVALID_REQUEST,
                                           "Missing 'method' field")

            if method not in self.methods:
                return self._error_response(request_id, self.ERROR_METHOD_NOT_FOUND,
                                           f"Method not found: {method}")

            if not isinstance(params, dict):
                return self._error_response(request_id, self.ERROR_INVALID_PARAMS,
                                           f"Params must be an object, got {type(params).__name__}")

            self._log(f"Dispatching method: {method}")
            result = self.methods[method](params)

            return self._success_response(request_id, result)

        except InvalidParams as e:
            return self._error_response(request_id, self.ERROR_INVALID_PARAMS, str(e))

        except ValidationLibError as e:
            # Developer errors in the rule spec: report the type so callers can tell them apart
            return self._error_response(request_id, self.ERROR_VALIDATION, str(e),
                                       data={"type": type(e).__name__})

        except Exception as e:
            self._log(f"Error processing request: {e}")
            return self._error_response(request_id, self.ERROR_INTERNAL,
                                       f"Internal error: {e}")

    # Method handlers - wrap ValidationService API

    def _require(self, params: Dict[str, Any], name: str, kind: type = dict) -> Any:
        value = params.get(name)
        if value is None:
            raise InvalidParams(f"Missing required parameter: {name}")
        if not isinstance(value, kind):
            raise InvalidParams(f"Parameter {name} must be an object")
        return value

    def _handle_validate(self, params: Dict[str, Any]) -> Any:
        """Handle 'validate' method."""
        result = asyncio.run(self.service.validate(
            self._require(params, 'data'),
            self._require(params, 'rules'),
            params.get('messages'),
            params.get('formatter'),
        ))
        return self._result_to_json(result)

    def _handle_validate_all(self, params: Dict[str, Any]) -> Any:
        """Handle 'validate_all' method."""
        result = asyncio.run(self.service.validate_all(
            self._require(params, 'data'),
            self._require(params, 'rules'),
            params.get('messages'),
            params.get('formatter'),
        ))
        return self._result_to_json(result)

    def _handle_sanitize(self, params: Dict[str, Any]) -> Any:
        """Handle 'sanitize' method."""
        return self.service.sanitize(
            self._require(params, 'data'),
            self._require(params, 'rules'),
        )

    def _handle_discover_rules(self, params: Dict[str, Any]) -> Any:
        """Handle 'discover_rules' method."""
        # No parameters required
        return self.service.discover_rules()

    # Response formatting

    def _result_to_json(self, result: ValidationResult) -> Dict[str, Any]:
        return {
            "passed": result.passed,
            "messages": {field: list(msgs) for field, msgs in result.messages.items()},
            "errors": result.errors,
        }

    def _success_response(self, request_id: Any, result: Any) -> Dict[str, Any]:
        """Format successful JSON-RPC response."""
        return {
            "jsonrpc": "2.0",
            "id": request_id,
            "result": result
        }

    def _error_response(self, request_id: Any, code: int, message: str,
                       data: Optional[Any] = None) -> Dict[str, Any]:
        """Format JSON-RPC error response."""
        error = {
            "code": code,
            "message": message
        }
        if data is not None:
            error["data"] = data

        return {
            "jsonrpc": "2.0",
            "id": request_id,
            "error": error
        }

    def _send_response(self, response: Dict[str, Any]):
        """Send JSON-RPC response to stdout."""
        response_json = json.dumps(response, default=str)
        self._log(f"Sending: {response_json}")
        sys.stdout.write(response_json + "\n")
        sys.stdout.flush()


def main():
    """Main entry point for JSON-RPC server."""
    parser = argparse.ArgumentParser(
        description="ValidationService JSON-RPC 2.0 Server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Example usage:
  python -m request_validation.jsonrpc_server
  python -m request_validation.jsonrpc_server --debug

Supported methods:
  - validate
  - validate_all
  - sanitize
  - discover_rules

Protocol: JSON-RPC 2.0 over stdin/stdout
See: https://www.jsonrpc.org/specification
        """
    )
    parser.add_argument('--debug', action='store_true',
                       help='Enable debug logging to stderr')

    args = parser.parse_args()

    server = ValidationJsonRpcServer(debug=args.debug)

    def signal_handler(sig, frame):
        server.stop_server()

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    server.start_server()


if __name__ == "__main__":
    main()
