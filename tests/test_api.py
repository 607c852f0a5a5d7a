"""
API tests using FastAPI's TestClient with a SQLite session and mocked
Celery/Redis.
"""

import json
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from conftest import build_workbook, make_address, make_record, sheet_row

import api.routers.import_router as import_router
from api.dependencies import get_db, get_photo_storage
from api.main import app
from backend.models.job import JobProgress, JobRun, JobStatus, JobType
from services.business_service import BusinessService
from services.storage_service import PhotoStorageService

XLSX = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
JANE = {'X-User-Id': 'uid-jane', 'X-User-Email': 'jane@example.com'}
SAM = {'X-User-Id': 'uid-sam', 'X-User-Email': 'sam@example.com'}


@pytest.fixture
def client(session, tmp_path):
    def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_photo_storage] = lambda: PhotoStorageService(
        storage_dir=str(tmp_path / 'media'), public_base_url='http://testserver/media'
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def store(session):
    return BusinessService(session)


@pytest.fixture
def queue(monkeypatch):
    task = MagicMock()
    monkeypatch.setattr(import_router, 'create_businesses', task)
    return task


@pytest.fixture
def progress_cache(monkeypatch):
    cache = MagicMock()
    cache.get.return_value = None
    monkeypatch.setattr(import_router, 'redis_client', cache)
    return cache


def xlsx_upload(rows, filename='businesses.xlsx'):
    return {'file': (filename, build_workbook(rows), XLSX)}


class TestHealth:

    def test_ping(self, client):
        assert client.get('/api/ping').json() == {'ping': 'pong'}

    def test_root(self, client):
        assert client.get('/').json()['docs'] == '/docs'


class TestListing:

    def test_search_filters_and_pages(self, client, store):
        store.create(make_record(name='Sunrise Bakery', city='Pune', categories=['Bakery', 'Food']))
        store.create(make_record(name='Blue Door Cafe', city='Pune', categories=['Cafe', 'Food']))
        store.create(make_record(name='Pixel Repairs', city='Mumbai', categories=['Electronics']))

        body = client.get('/api/businesses', params={'city': 'Pune', 'tags': ['Food'], 'page_size': 1}).json()

        assert body['total'] == 2
        assert body['total_pages'] == 2
        assert len(body['items']) == 1
        assert body['available_cities'] == ['Mumbai', 'Pune']
        assert body['available_categories'] == ['Bakery', 'Cafe', 'Electronics', 'Food']

    def test_text_query(self, client, store):
        store.create(make_record(name='Sunrise Bakery'))
        store.create(make_record(name='Pixel Repairs', categories=['Electronics']))

        body = client.get('/api/businesses', params={'q': 'pixel'}).json()
        assert [b['name'] for b in body['items']] == ['Pixel Repairs']

    def test_recent(self, client, store):
        for i in range(3):
            store.create(make_record(name=f'Business {i}'))
        assert len(client.get('/api/businesses/recent', params={'limit': 2}).json()) == 2

    def test_by_city_exact(self, client, store):
        store.create(make_record(name='Uptown', city='New York'))
        store.create(make_record(name='Downtown', city='New York City'))

        body = client.get('/api/businesses/city/New York').json()
        assert [b['name'] for b in body] == ['Uptown']

    def test_by_category(self, client, store):
        store.create(make_record(name='Sunrise Bakery'))
        store.create(make_record(name='Pixel Repairs', categories=['Electronics']))

        body = client.get('/api/businesses/category/Electronics').json()
        assert [b['name'] for b in body] == ['Pixel Repairs']

    def test_get_unknown(self, client):
        assert client.get('/api/businesses/missing').status_code == 404


class TestCreateAndEdit:

    def test_create_stamps_creator(self, client, store):
        response = client.post('/api/businesses', json=make_record(), headers=JANE)

        assert response.status_code == 201
        business = store.get_by_id(response.json()['id'])
        assert business.createdBy == 'jane'
        assert business.updatedBy == 'jane'
        assert business.user_id == 'uid-jane'

    def test_create_anonymous(self, client, store):
        business_id = client.post('/api/businesses', json=make_record()).json()['id']
        assert store.get_by_id(business_id).createdBy == 'anonymous'

    def test_create_reports_field_errors(self, client):
        record = make_record(name='A')
        record['addresses'][0]['emails'] = ['not-an-email']

        response = client.post('/api/businesses', json=record)
        assert response.status_code == 422
        errors = {e['path']: e['message'] for e in response.json()['errors']}
        assert errors['name'] == 'Name must be at least 2 characters'
        assert errors['addresses.0.emails.0'] == 'Invalid email format'

    def test_edit_keeps_creator(self, client, store):
        business_id = client.post('/api/businesses', json=make_record(), headers=JANE).json()['id']

        response = client.put(f'/api/businesses/{business_id}', json={'brief': 'Open late on Fridays now'}, headers=SAM)
        assert response.json() == {'id': business_id, 'updated': True}

        business = store.get_by_id(business_id)
        assert business.brief == 'Open late on Fridays now'
        assert business.createdBy == 'jane'
        assert business.updatedBy == 'sam'
        assert business.user_id == 'uid-sam'

    def test_edit_validates_merged_record(self, client, store):
        business_id = store.create(make_record())
        response = client.put(f'/api/businesses/{business_id}', json={'addresses': []})

        assert response.status_code == 422
        assert response.json()['errors'] == [{'path': 'addresses', 'message': 'At least one address is required'}]
        assert store.get_by_id(business_id).cities == ['New York']

    def test_edit_addresses(self, client, store):
        business_id = store.create(make_record())
        addresses = [make_address(city='Boston'), make_address(city='Chicago')]

        client.put(f'/api/businesses/{business_id}', json={'addresses': addresses})
        assert store.get_by_id(business_id).cities == ['Boston', 'Chicago']

    def test_edit_unknown(self, client):
        assert client.put('/api/businesses/missing', json={'name': 'Anything'}).status_code == 404

    def test_delete(self, client, store):
        business_id = store.create(make_record())
        assert client.delete(f'/api/businesses/{business_id}').status_code == 204
        assert client.delete(f'/api/businesses/{business_id}').status_code == 404


class TestProfile:

    def test_profile_card(self, client, store):
        business_id = store.create(make_record())
        card = client.get(f'/api/profilecard/{business_id}').json()

        assert card['initials'] == 'SB'
        assert card['profileUrl'].endswith(f'/profilecard/{business_id}')
        assert card['detailsPath'] == f'/business/{business_id}'

    def test_qr_code(self, client, store):
        business_id = store.create(make_record())
        response = client.get(f'/api/profilecard/{business_id}/qr.svg')

        assert response.status_code == 200
        assert response.headers['content-type'].startswith('image/svg+xml')
        assert '<svg' in response.text

    def test_unknown_business(self, client):
        assert client.get('/api/profilecard/missing').status_code == 404
        assert client.get('/api/profilecard/missing/qr.svg').status_code == 404

    def test_share_metadata(self, client, store):
        business_id = store.create(make_record(profilePhoto='https://example.com/p.jpg'))
        meta = client.get(f'/api/businesses/{business_id}/metadata').json()

        assert meta['title'].startswith('Sunrise Bakery | ')
        assert meta['openGraph']['images'] == ['https://example.com/p.jpg']

    def test_share_metadata_defaults(self, client):
        meta = client.get('/api/businesses/missing/metadata').json()
        assert meta == {'title': 'Business Directory', 'description': 'A directory of local businesses'}


class TestPhotoUpload:

    def test_upload_returns_url(self, client, tmp_path):
        response = client.post('/api/upload', files={'file': ('shop.png', b'\x89PNG', 'image/png')})

        assert response.status_code == 200
        url = response.json()['url']
        assert url.startswith('http://testserver/media/business-photos/')
        assert url.endswith('.png')
        assert len(list((tmp_path / 'media' / 'business-photos').iterdir())) == 1

    def test_replaced_photo_removed(self, client, store, tmp_path):
        photos = tmp_path / 'media' / 'business-photos'
        old_url = client.post('/api/upload', files={'file': ('old.png', b'old', 'image/png')}).json()['url']
        new_url = client.post('/api/upload', files={'file': ('new.png', b'new', 'image/png')}).json()['url']
        business_id = store.create(make_record(profilePhoto=old_url))

        client.put(f'/api/businesses/{business_id}', json={'profilePhoto': new_url})

        assert [p.name for p in photos.iterdir()] == [new_url.rsplit('/', 1)[-1]]

    def test_photo_removed_with_business(self, client, store, tmp_path):
        url = client.post('/api/upload', files={'file': ('shop.png', b'png', 'image/png')}).json()['url']
        business_id = store.create(make_record(profilePhoto=url))

        assert client.delete(f'/api/businesses/{business_id}').status_code == 204
        assert list((tmp_path / 'media' / 'business-photos').iterdir()) == []

    def test_external_photo_left_alone(self, client, store, tmp_path):
        kept = client.post('/api/upload', files={'file': ('shop.png', b'png', 'image/png')}).json()['url']
        business_id = store.create(make_record(profilePhoto='https://example.com/elsewhere.jpg'))

        client.delete(f'/api/businesses/{business_id}')
        assert len(list((tmp_path / 'media' / 'business-photos').iterdir())) == 1
        assert kept.startswith('http://testserver/media/')

    def test_non_image_rejected(self, client):
        response = client.post('/api/upload', files={'file': ('notes.txt', b'hello', 'text/plain')})
        assert response.status_code == 400
        assert response.json()['detail'] == 'Please upload an image file'

    def test_too_large_rejected(self, client):
        big = b'\0' * (5 * 1024 * 1024 + 1)
        response = client.post('/api/upload', files={'file': ('huge.jpg', big, 'image/jpeg')})
        assert response.status_code == 413


class TestImportValidate:

    def test_valid_file(self, client):
        response = client.post('/api/import/validate', files=xlsx_upload([sheet_row(), sheet_row(name='Other Shop', phone='5550000000')]))
        assert response.json() == {
            'state': 'valid_records_ready', 'total_rows': 2, 'valid_count': 2, 'errors': []
        }

    def test_errors_listed(self, client):
        response = client.post('/api/import/validate', files=xlsx_upload([sheet_row(brief='short')]))
        body = response.json()
        assert body['state'] == 'validation_failed'
        assert body['valid_count'] == 0
        assert body['errors'] == ['Row 2: brief - Brief description must be at least 10 characters']

    def test_duplicate_of_stored_business(self, client, store):
        store.create(make_record())
        body = client.post('/api/import/validate', files=xlsx_upload([sheet_row()])).json()
        assert body['errors'][0].startswith('Row 2: name - Duplicate of existing business "Sunrise Bakery"')

    def test_wrong_extension(self, client):
        response = client.post('/api/import/validate', files={'file': ('data.csv', b'a,b', 'text/csv')})
        assert response.status_code == 400
        assert response.json()['detail'] == 'Please upload an Excel file (.xlsx)'


class TestImportUpload:

    def test_queues_job(self, client, session, queue):
        response = client.post('/api/import/upload', files=xlsx_upload([sheet_row()]), headers=JANE)

        assert response.status_code == 202
        body = response.json()
        assert body['record_count'] == 1
        assert body['status_url'] == f"/api/import/job/{body['job_id']}"

        args, kwargs = queue.apply_async.call_args
        records, user = kwargs['args']
        assert kwargs['task_id'] == body['job_id']
        assert records[0]['name'] == 'Sunrise Bakery'
        assert user == {'uid': 'uid-jane', 'email': 'jane@example.com'}

        job = session.query(JobRun).filter_by(job_id=body['job_id']).one()
        assert job.status == JobStatus.PENDING
        assert job.created_by == 'jane'

    def test_invalid_file_not_queued(self, client, session, queue):
        response = client.post('/api/import/upload', files=xlsx_upload([sheet_row(), sheet_row(name='X', phone='1')]))

        assert response.status_code == 422
        assert response.json()['errors'] == ['Row 3: name - Name must be at least 2 characters']
        queue.apply_async.assert_not_called()
        assert session.query(JobRun).count() == 0

    def test_empty_sheet_not_queued(self, client, queue):
        response = client.post('/api/import/upload', files={
            'file': ('empty.xlsx', build_workbook([], header=['name']), XLSX)
        })
        assert response.status_code == 422
        assert response.json()['errors'] == ['No records found in file']
        queue.apply_async.assert_not_called()

    def test_queue_down_marks_job_failed(self, client, session, queue):
        queue.apply_async.side_effect = ConnectionError('broker unreachable')

        response = client.post('/api/import/upload', files=xlsx_upload([sheet_row()]))
        assert response.status_code == 503
        assert session.query(JobRun).one().status == JobStatus.FAILED


class TestJobs:

    def add_job(self, session, job_id, status=JobStatus.PENDING):
        session.add(JobRun(job_id=job_id, job_type=JobType.BULK_IMPORT, status=status, params={}, created_by='jane'))
        session.commit()

    def test_status_from_cache(self, client, session, progress_cache):
        self.add_job(session, 'job-1', JobStatus.PROCESSING)
        progress_cache.get.return_value = json.dumps({
            'stage': 'dispatching', 'percent': 0.0, 'message': 'Creating 2 businesses',
            'timestamp': '2026-03-02T12:00:00'
        })

        body = client.get('/api/import/job/job-1').json()
        assert body['status'] == 'processing'
        assert body['progress']['message'] == 'Creating 2 businesses'

    def test_status_falls_back_to_database(self, client, session, progress_cache):
        self.add_job(session, 'job-1', JobStatus.SUCCESS)
        session.add(JobProgress(job_id='job-1', stage='complete', percent=100, message='Created 1 of 1 businesses'))
        session.commit()

        body = client.get('/api/import/job/job-1').json()
        assert body['progress']['stage'] == 'complete'
        assert body['progress']['percent'] == 100.0

    def test_unknown_job(self, client, progress_cache):
        assert client.get('/api/import/job/nope').status_code == 404

    def test_list_jobs(self, client, session):
        self.add_job(session, 'job-1', JobStatus.SUCCESS)
        self.add_job(session, 'job-2', JobStatus.FAILED)

        body = client.get('/api/import/jobs', params={'status': 'failed'}).json()
        assert body['total'] == 1
        assert [j['job_id'] for j in body['items']] == ['job-2']

    def test_cancel(self, client, session, monkeypatch):
        from tasks.celery_app import celery_app
        revoke = MagicMock()
        monkeypatch.setattr(celery_app.control, 'revoke', revoke)
        self.add_job(session, 'job-1')

        assert client.delete('/api/import/job/job-1').status_code == 204
        revoke.assert_called_once_with('job-1')
        assert session.query(JobRun).one().status == JobStatus.CANCELLED

    def test_cancel_finished_job(self, client, session):
        self.add_job(session, 'job-1', JobStatus.SUCCESS)
        assert client.delete('/api/import/job/job-1').status_code == 400


class TestWorkbookDownloads:

    def test_sample(self, client):
        response = client.get('/api/import/sample')
        assert response.status_code == 200
        assert 'business_upload_sample.xlsx' in response.headers['content-disposition']

    def test_export(self, client, store):
        store.create(make_record())
        response = client.get('/api/import/export')
        assert response.status_code == 200
        assert response.content[:2] == b'PK'
