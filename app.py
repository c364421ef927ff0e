#!/usr/bin/env python3
"""
Statement Reconciler - Web Interface

A Flask-based API that parses bank statement PDFs, extracts the statement
fields with an LLM and checks that the transactions reconcile with the
stated balances.
"""
import logging
import os
from datetime import datetime
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request

from config import APP_NAME, APP_VERSION, UPLOAD_FIELD_NAME, get_api_key, get_config
from extractor.llm_client import LLMCallError, StatementExtractor
from parsers.pdf_parser import ExtractionError
from processor import StatementProcessor, UploadValidationError


# =============================================================================
# Application Configuration
# =============================================================================

logging.basicConfig(
    level=get_config().get("log_level") or "INFO",
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(
    config_overrides: Optional[Dict[str, Any]] = None,
    extractor: Optional[StatementExtractor] = None,
) -> Flask:
    """
    Build the Flask application.

    Args:
        config_overrides: Values merged over the loaded configuration
        extractor: LLM extractor to use instead of one built from the API key

    Returns:
        Configured Flask app
    """
    settings = get_config().as_dict()
    settings.update(config_overrides or {})

    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = settings["max_content_length"]

    if extractor is None:
        api_key = settings.get("anthropic_api_key") or get_api_key()
        if not api_key:
            logger.warning("ANTHROPIC_API_KEY not set; statements will be parsed without LLM extraction")
        extractor = StatementExtractor(
            api_key=api_key,
            model=settings["llm_model"],
            max_tokens=settings["llm_max_tokens"],
            max_input_chars=settings["llm_max_input_chars"],
        )

    processor = StatementProcessor(
        extractor=extractor,
        snippet_chars=settings["raw_text_snippet_chars"],
    )
    app.extensions['statement_processor'] = processor

    _register_routes(app)
    return app


# =============================================================================
# Routes
# =============================================================================

def _register_routes(app: Flask) -> None:

    @app.route('/api/parse-statement', methods=['POST'])
    def parse_statement():
        """Handle statement upload, extraction and reconciliation."""
        logger.info("POST /api/parse-statement received")

        file = request.files.get(UPLOAD_FIELD_NAME)
        if file is None or file.filename == '':
            logger.warning("Validation error: no file found in form data")
            return jsonify({'error': 'No file uploaded.'}), 400

        processor: StatementProcessor = app.extensions['statement_processor']

        try:
            content = file.read()
            result = processor.process(content, file.filename, file.mimetype)
        except UploadValidationError as e:
            return jsonify({'error': str(e)}), 400
        except ExtractionError as e:
            return jsonify({
                'error': 'Error processing PDF file content.',
                'details': str(e),
            }), 500
        except LLMCallError as e:
            return jsonify({
                'error': 'Error calling the language model.',
                'details': str(e),
            }), 502
        except Exception as e:
            logger.exception("Unexpected error processing %s", file.filename)
            return jsonify({
                'error': 'An unexpected server error occurred.',
                'details': str(e) or 'Unknown server error.',
            }), 500

        logger.info(
            "Processed %s: %d transaction(s), reconciliation %s",
            file.filename,
            len(result.statement.transactions),
            "matches" if result.reconciliation.matches else "does not match",
        )
        return jsonify(result.to_dict())

    @app.route('/health')
    def health_check():
        """Health check endpoint."""
        processor: StatementProcessor = app.extensions['statement_processor']
        return jsonify({
            'status': 'healthy',
            'app': APP_NAME,
            'version': APP_VERSION,
            'llm_enabled': bool(processor.extractor and processor.extractor.is_available()),
            'timestamp': datetime.now().isoformat()
        })

    @app.errorhandler(413)
    def file_too_large(e):
        """Handle file too large error."""
        limit = app.config['MAX_CONTENT_LENGTH']
        return jsonify({
            'error': f'File too large. Maximum size is {limit // (1024 * 1024)} MB.'
        }), 413

    @app.errorhandler(500)
    def internal_error(e):
        """Handle internal server error."""
        logger.error(f"Internal server error: {e}")
        return jsonify({
            'error': 'An internal error occurred. Please try again.'
        }), 500


app = create_app()


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    debug = os.environ.get('FLASK_DEBUG', 'false').lower() == 'true'

    logger.info(f"Starting {APP_NAME} v{APP_VERSION} on port {port}")

    app.run(host='0.0.0.0', port=port, debug=debug)
