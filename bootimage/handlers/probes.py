import datetime
import kopf


# Liveness probe
@kopf.on.probe(id='now')
def get_current_timestamp(**kwargs):
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


@kopf.on.probe(id='passes')
def get_pending_passes(memo: kopf.Memo, **kwargs):
    trigger = getattr(memo, "trigger", None)
    return trigger.pending if trigger is not None else 0
