"""Database configuration and initialization."""
from sqlalchemy import BigInteger, Integer, create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base

# Create SQLAlchemy base
Base = declarative_base()

# BIGINT keys in PostgreSQL; SQLite only autoincrements INTEGER PRIMARY KEY
BigId = BigInteger().with_variant(Integer, 'sqlite')

# Global session and engine
engine = None
db_session = None


def _engine_options(database_uri, echo):
    """Build create_engine kwargs for the configured backend."""
    options = {'echo': echo, 'pool_pre_ping': True}
    if make_url(database_uri).get_backend_name() == 'sqlite':
        # Settlement threads share the file; writers wait on the lock instead of failing
        options['connect_args'] = {'check_same_thread': False, 'timeout': 30}
    else:
        options['pool_size'] = 10
        options['max_overflow'] = 20
    return options


def init_db(app):
    """Initialize database connection."""
    global engine, db_session

    database_uri = app.config['SQLALCHEMY_DATABASE_URI']
    engine = create_engine(
        database_uri,
        **_engine_options(database_uri, app.config.get('SQLALCHEMY_ECHO', False))
    )

    db_session = scoped_session(
        sessionmaker(autocommit=False, autoflush=False, bind=engine)
    )

    Base.query = db_session.query_property()

    # Register teardown
    @app.teardown_appcontext
    def shutdown_session(exception=None):
        """Close database session and rollback on error."""
        if exception:
            db_session.rollback()
        db_session.remove()


def create_all():
    """Create every table known to the models package."""
    import storefront.models  # noqa: F401  (registers mappers)
    Base.metadata.create_all(bind=engine)


def drop_all():
    """Drop every table (tests and `flask init-db --drop`)."""
    import storefront.models  # noqa: F401
    Base.metadata.drop_all(bind=engine)


def ping():
    """Return True when the database answers a trivial query."""
    with engine.connect() as conn:
        conn.execute(text('SELECT 1'))
    return True


def get_session():
    """Get database session."""
    return db_session
