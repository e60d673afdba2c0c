"""
Web API for Java Runtime Helper
Flask-based JSON endpoints over JDK discovery and the release advisor
"""
import asyncio
import logging

from flask import Flask, jsonify, request

from java_runtime import (
    current_java_runtime,
    find_java_runtime_entries,
    runtime_validity,
)
from release_advisor import ReleaseAdvisorError, suggest_open_jdk
from settings import Settings

logger = logging.getLogger(__name__)


def create_app(settings: Settings) -> Flask:
    """Build the Flask app bound to one settings store"""
    app = Flask(__name__)

    # ========================================================================
    # API ENDPOINTS
    # ========================================================================

    @app.route('/api/java/runtime')
    def api_java_runtime():
        """List validated JDK candidates"""
        try:
            entries = asyncio.run(find_java_runtime_entries(settings))
            return jsonify({
                'success': True,
                'entries': [e.to_dict() for e in entries]
            })
        except Exception as e:
            logger.exception("Listing JDK candidates failed")
            return jsonify({'success': False, 'error': str(e)}), 500

    @app.route('/api/java/validate')
    def api_java_validate():
        """Is the JDK in use valid?"""
        try:
            entries = asyncio.run(find_java_runtime_entries(settings))
            current = current_java_runtime(entries)
            return jsonify({
                'success': True,
                'valid': runtime_validity(entries),
                'current': current.to_dict() if current else None
            })
        except Exception as e:
            logger.exception("JDK validation failed")
            return jsonify({'success': False, 'error': str(e)}), 500

    @app.route('/api/java/suggest')
    def api_java_suggest():
        """Latest matching OpenJDK release"""
        jdk_version = request.args.get('jdkVersion') or settings.get('jdkAdvisor.jdkVersion')
        jvm_impl = request.args.get('jvmImpl') or settings.get('jdkAdvisor.jvmImpl')
        try:
            jdk_info = asyncio.run(suggest_open_jdk(
                jdk_version, jvm_impl, api_base=settings.get('jdkAdvisor.apiBase'),
            ))
            return jsonify({
                'success': True,
                'jdkInfo': jdk_info
            })
        except ReleaseAdvisorError as e:
            logger.warning("JDK suggestion failed: %s", e)
            return jsonify({'success': False, 'error': str(e)}), 502
        except Exception as e:
            logger.exception("JDK suggestion failed")
            return jsonify({'success': False, 'error': str(e)}), 500

    return app


def run_server(settings, port=5000):
    """Run Flask server"""
    app = create_app(settings)
    print(f"🚀 Starting web API on http://localhost:{port}")
    print(f"   Try http://localhost:{port}/api/java/runtime\n")
    app.run(host='0.0.0.0', port=port, debug=False, threaded=True)


if __name__ == '__main__':
    run_server(Settings('config.json'))
